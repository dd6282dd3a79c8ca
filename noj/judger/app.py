import asyncio
import logging
import platform
from functools import lru_cache
from typing import Any, Dict, List, Union

import orjson
from celery import Celery, Task
from celery.signals import setup_logging
from loguru import logger
from pydantic_universal_settings import init_settings
from pydantic_universal_settings.cli import async_command
from tenacity import RetryError

from noj.judger.backend import BackendClient
from noj.judger.config import AllSettings
from noj.judger.provisioner import TestCaseCache
from noj.judger.runner import ProcessRunner
from noj.judger.sandbox import Sandbox
from noj.judger.storage import LocalStorage
from noj.judger.task import JudgeTask
from noj.judger.toolchains import get_toolchains_config
from noj.judger.utils.retry import retry_init


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        level: Union[int, str]
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


@setup_logging.connect
def setup_celery_logging(*args: Any, **kwargs: Any) -> None:
    logging.basicConfig(
        handlers=[InterceptHandler()],
        level=logging.INFO,
    )


settings = init_settings(AllSettings, overwrite=False)
if settings.debug:
    logger.debug(f"settings: {settings}")
app = Celery(
    "tasks",
    backend=settings.result_backend_url,
    broker=settings.broker_url,
)

app.conf.update(
    {
        "result_persistent": False,
        "task_acks_late": True,
        "task_default_queue": settings.queues.split(",")[0],
    }
)


@lru_cache()
def get_test_case_cache() -> TestCaseCache:
    # shared by every task of this worker process
    return TestCaseCache(
        settings.test_case_cache_dir, LocalStorage(settings.storage_root)
    )


def create_judge_task(submission_id: int, backend: BackendClient) -> JudgeTask:
    runner = ProcessRunner(debug=settings.debug)
    sandbox = Sandbox(
        runner,
        sandbox_path=settings.sandbox_path,
        max_process=settings.sandbox_max_process,
        output_size_limit=settings.sandbox_output_size_limit,
    )
    return JudgeTask(
        submission_id,
        backend=backend,
        test_cases=get_test_case_cache(),
        toolchains=get_toolchains_config(),
        runner=runner,
        sandbox=sandbox,
    )


@app.task(name="noj.judger.task", bind=True)
@async_command
async def submit_task(self: Task, submission_id: int) -> Dict[str, Any]:
    async with BackendClient(settings.backend_url, settings.backend_token) as backend:
        task = create_judge_task(submission_id, backend)
        try:
            submit_result = await task.submit()
        except Exception as e:
            # the queue decides whether to retry a failed run
            logger.exception(f"task[{task.id}] failed: {e}")
            raise
    logger.info(f"task[{task.id}] submit result: {submit_result.status}")
    return orjson.loads(orjson.dumps(submit_result.dict()))


async def startup(settings: AllSettings, *, test: bool = False) -> List[str]:
    async def startup_event() -> None:  # pragma: no cover
        @retry_init("Celery")
        async def try_init_celery() -> None:
            logger.info(f"Celery app inspect result: {app.control.inspect().active()}")

        try:
            await try_init_celery()
        except RetryError as e:
            logger.error("Initialization failed, exiting.")
            logger.error(e)
            exit(-1)

    async def generate_celery_argv(
        settings: AllSettings, *, test: bool = False
    ) -> List[str]:
        argv = [
            "worker",
            f"--concurrency={settings.workers}",
            "-E",
        ]
        if platform.system() == "Windows":
            argv += ["-P", "solo"]
        if worker_name := settings.worker_name:
            argv += ["-n", worker_name]
        if not test:
            # fail fast on a broken toolchains config
            get_toolchains_config()
            argv.extend(["-Q", settings.queues])
        return argv

    _, argv = await asyncio.gather(
        startup_event(), generate_celery_argv(settings, test=test)
    )
    logger.debug(f"celery argv: {argv}")
    return argv


async def main() -> None:
    app.worker_main(argv=await startup(settings))


if __name__ == "__main__":
    if platform.system() != "Windows":
        import uvloop

        asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
    asyncio.run(main())
