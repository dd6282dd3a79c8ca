import io
import zipfile
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from benedict import benedict

from noj.judger.provisioner import case_dir_name
from noj.judger.schemas import CompletedCommand, Problem, Submission, SubmitResult, Task

TOOLCHAINS_CONFIG = Path(__file__).parents[3] / "toolchains" / "config.yaml"

# stdin of a case -> (status token, stdout, duration ms, memory KB)
Program = Callable[[str], Tuple[str, str, int, int]]


def add_program(stdin: str) -> Tuple[str, str, int, int]:
    a, b = stdin.split()
    return "AC", f"{int(a) + int(b)}\n", 10, 1024


class FakeRunner:
    """
    Stands in for ProcessRunner: records every command and answers
    compiler invocations with ``compile_result`` and sandbox invocations
    by running ``program`` against the case stdin, writing the files the
    sandbox binary would write.
    """

    def __init__(
        self,
        program: Program = add_program,
        compile_result: Optional[CompletedCommand] = None,
        sandbox_result: Optional[CompletedCommand] = None,
    ):
        self.program = program
        self.compile_result = compile_result or CompletedCommand(
            return_code=0, stdout=b"", stderr=b""
        )
        self.sandbox_result = sandbox_result
        self.commands: List[Tuple[List[str], Optional[str]]] = []
        self.configs: List[benedict] = []

    @property
    def sandbox_calls(self) -> int:
        return sum(1 for args, _ in self.commands if "--env-path" in args)

    def run_command(self, args: List[str], cwd: Optional[str] = None) -> CompletedCommand:
        self.commands.append((list(args), cwd))
        if "--env-path" not in args:
            return self.compile_result
        if self.sandbox_result is not None:
            return self.sandbox_result

        config = benedict(args[args.index("--env-path") + 1], format="toml")
        self.configs.append(config)
        # relative paths resolve against the sandbox cwd, as for a real process
        stdin = (Path(cwd or ".") / config["stdin"]).read_text()
        status, stdout, duration, memory = self.program(stdin)
        Path(config["stdout"]).write_text(stdout)
        Path(config["stderr"]).write_text("")
        Path(config["output"]).write_text(f"{status}\nexit\n{duration}\n{memory}\n")
        return CompletedCommand(return_code=0, stdout=b"", stderr=b"")


def make_test_case(tasks: Sequence[Task]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as test_case:
        for task_i, task in enumerate(tasks):
            for case_i in range(task.test_case_count):
                name = case_dir_name(task_i, case_i)
                test_case.writestr(f"test-case/{name}/STDIN", f"{task_i} {case_i}\n")
                test_case.writestr(f"test-case/{name}/STDOUT", f"{task_i + case_i}\n")
    return buf.getvalue()


class FakeBackend:
    def __init__(self, submission: Submission, problem: Problem):
        self.submission = submission
        self.problem = problem
        self.submitted: List[Tuple[int, SubmitResult]] = []

    async def get_submission(self, submission_id: int) -> Submission:
        assert submission_id == self.submission.id
        return self.submission

    async def get_problem(self, problem_id: int) -> Problem:
        assert problem_id == self.problem.id
        return self.problem

    async def submit_result(self, submission_id: int, result: SubmitResult) -> None:
        self.submitted.append((submission_id, result))
