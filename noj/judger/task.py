import asyncio
import tempfile
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar
from uuid import UUID, uuid4

from loguru import logger

from noj.judger.aggregator import aggregate, fill_results
from noj.judger.backend import BackendClient
from noj.judger.compiler import Compiler, CompileResult
from noj.judger.provisioner import TestCaseCache
from noj.judger.runner import ProcessRunner
from noj.judger.sandbox import Sandbox
from noj.judger.schemas import JudgeResult, Problem, Submission, SubmitResult
from noj.judger.toolchains import Toolchain, ToolchainsConfig

T = TypeVar("T")


async def run_sync(func: Callable[..., T], *args: Any) -> T:
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, func, *args)


class JudgeTask:
    id: UUID
    submission_id: int
    submission: Submission
    problem: Problem
    toolchain: Toolchain
    problem_dir: Path

    def __init__(
        self,
        submission_id: int,
        backend: BackendClient,
        test_cases: TestCaseCache,
        toolchains: ToolchainsConfig,
        runner: Optional[ProcessRunner] = None,
        sandbox: Optional[Sandbox] = None,
    ) -> None:
        self.id = uuid4()
        self.submission_id = submission_id
        self.backend = backend
        self.test_cases = test_cases
        self.toolchains = toolchains
        self.runner = runner or ProcessRunner()
        self.compiler = Compiler(self.runner)
        self.sandbox = sandbox or Sandbox(self.runner)

    def log_prefix(self) -> str:
        return f"Task noj.judger.task[{self.id}]"

    async def fetch(self) -> None:
        self.submission = await self.backend.get_submission(self.submission_id)
        self.problem = await self.backend.get_problem(self.submission.problem_id)
        self.toolchain = self.toolchains.get(self.submission.language)
        logger.info(
            f"{self.log_prefix()} fetched submission {self.submission.id} "
            f"({self.submission.language}) of problem {self.problem.id}"
        )

    async def provision(self) -> None:
        self.problem_dir = await run_sync(self.test_cases.provision, self.problem)
        logger.info(f"{self.log_prefix()} test cases ready at {self.problem_dir}")

    async def compile(self, working_dir: str) -> CompileResult:
        res = await run_sync(
            self.compiler.compile, self.toolchain, self.submission.code, working_dir
        )
        logger.info(f"{self.log_prefix()} compile result: success={res.success}")
        return res

    async def execute(self, working_dir: str) -> List[List[JudgeResult]]:
        all_results = []
        for i, task in enumerate(self.problem.tasks):
            task_results = []
            for j in range(task.test_case_count):
                stdin_path, answer_path = self.test_cases.case_paths(
                    self.problem.id, i, j
                )
                res = await run_sync(
                    self.sandbox.execute,
                    task,
                    self.toolchain.code,
                    stdin_path,
                    answer_path,
                    working_dir,
                    i,
                    j,
                )
                logger.debug(f"{self.log_prefix()} case {i}/{j}: {res.status}")
                task_results.append(res)
            all_results.append(task_results)
        return all_results

    async def judge(self) -> List[List[JudgeResult]]:
        await self.provision()
        with tempfile.TemporaryDirectory() as working_dir:
            compile_result = await self.compile(working_dir)
            if not compile_result.success:
                return fill_results(compile_result.to_judge_result(), self.problem.tasks)
            return await self.execute(working_dir)

    async def run(self) -> SubmitResult:
        """
        Grade the submission and return the result without writing it back.
        """
        await self.fetch()
        results = await self.judge()
        aggregated = aggregate(self.problem.tasks, results)
        submit_res = SubmitResult(**aggregated.dict(), results=results)
        logger.info(
            f"{self.log_prefix()} judged: status={submit_res.status}, "
            f"score={submit_res.score}, duration={submit_res.duration}, "
            f"memory={submit_res.memory}"
        )
        return submit_res

    async def submit(self) -> SubmitResult:
        submit_res = await self.run()
        await self.backend.submit_result(self.submission_id, submit_res)
        return submit_res
