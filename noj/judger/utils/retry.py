from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger
from tenacity import RetryCallState, retry, stop_after_attempt, wait_exponential

T = TypeVar("T")


def retry_init(
    name: str, attempts: int = 5
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Retry an async initialization step of the worker (e.g. connecting to
    the broker), raising tenacity.RetryError when every attempt failed.
    """

    def before_sleep(retry_state: RetryCallState) -> None:
        logger.warning(
            f"{name} initialization failed "
            f"(attempt {retry_state.attempt_number}/{attempts}), retrying"
        )

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @retry(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=0.5, max=8),
            before_sleep=before_sleep,
        )
        @wraps(func)
        async def wrapped(*args: Any, **kwargs: Any) -> T:
            logger.info(f"Initializing {name}...")
            return await func(*args, **kwargs)

        return wrapped

    return decorator
