from typing import Any, Dict, Optional

import aiohttp
import orjson
from loguru import logger

from noj.judger import errors
from noj.judger.schemas import Problem, Submission, SubmitResult


class BackendClient:
    """
    Talks to the online judge backend, which owns submissions and problems.

    Requests are not retried: a failing request rejects the run and
    the queue decides what happens next.
    """

    def __init__(self, base_url: str, token: str = ""):
        self.base_url = f"{base_url.rstrip('/')}/api"
        self.headers: Dict[str, str] = {}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "BackendClient":
        self._session = aiohttp.ClientSession(headers=self.headers)
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(headers=self.headers)
        return self._session

    async def _request(
        self, method: str, path: str, body: Optional[Dict[str, Any]] = None
    ) -> Any:
        url = f"{self.base_url}{path}"
        data = orjson.dumps(body) if body is not None else None
        try:
            async with self.session.request(
                method,
                url,
                data=data,
                headers={"Content-Type": "application/json"} if data else None,
            ) as resp:
                content = await resp.read()
                if resp.status >= 400:
                    raise errors.WorkerRejectError(
                        f"{method} {url} failed with status {resp.status}: "
                        f"{content.decode('utf-8', 'replace')}"
                    )
        except aiohttp.ClientError as e:
            # backend is down or network error of the worker
            raise errors.WorkerRejectError(f"failed to request {method} {url}: {e}")
        return orjson.loads(content) if content else None

    async def get_submission(self, submission_id: int) -> Submission:
        data = await self._request("GET", f"/submissions/{submission_id}")
        return Submission(**data)

    async def get_problem(self, problem_id: int) -> Problem:
        data = await self._request("GET", f"/problems/{problem_id}")
        return Problem(**data)

    async def submit_result(self, submission_id: int, result: SubmitResult) -> None:
        await self._request(
            "PUT", f"/submissions/{submission_id}/result", body=result.dict()
        )
        logger.info(f"result submitted to /submissions/{submission_id}/result")
