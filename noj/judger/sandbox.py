import tempfile
from pathlib import Path
from typing import Any, Dict, List

from benedict import benedict
from loguru import logger

from noj.judger import errors
from noj.judger.comparator import compare_output
from noj.judger.runner import ProcessRunner
from noj.judger.schemas import JudgeResult, JudgeStatus, Task

# statuses reported by the sandbox that skip the output check
SANDBOX_VERDICTS = {
    JudgeStatus.time_limit_exceeded.value,
    JudgeStatus.memory_limit_exceeded.value,
    JudgeStatus.runtime_error.value,
    JudgeStatus.output_limit_exceeded.value,
}

CONFIG_FILENAME = "noj.toml"


def _read_text(path: Path, name: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise errors.SandboxArtifactError(f"failed to read {name} @{path}: {e}") from e


def parse_sandbox_output(content: str, output_path: Path) -> Dict[str, Any]:
    """
    The sandbox result file has four lines:
    status token, exit message, duration (ms) and memory usage (KB).
    """
    lines: List[str] = content.splitlines()
    try:
        return {
            "status": lines[0].strip(),
            "exit_msg": lines[1],
            "duration": int(lines[2]),
            "memory": int(lines[3]),
        }
    except (IndexError, ValueError) as e:
        raise errors.SandboxArtifactError(
            f"failed to parse sandbox result @{output_path}: {e}"
        ) from e


class Sandbox:
    def __init__(
        self,
        runner: ProcessRunner,
        sandbox_path: str = "sandbox",
        max_process: int = 10,
        output_size_limit: int = 10000,
    ):
        self.runner = runner
        self.sandbox_path = sandbox_path
        self.max_process = max_process
        self.output_size_limit = output_size_limit

    def build_config(
        self, task: Task, lang: int, stdin_path: Path, output_dir: Path
    ) -> Dict[str, Any]:
        return {
            "cwd": ".",
            "large-stack": True,
            "max-process": self.max_process,
            "memory-limit": task.memory_limit,
            "output-size-limit": self.output_size_limit,
            "runtime-limit": task.time_limit,
            "lang": lang,
            "stdin": str(stdin_path),
            "stdout": str(output_dir / "stdout"),
            "stderr": str(output_dir / "stderr"),
            "output": str(output_dir / "output"),
        }

    def write_config(self, config: Dict[str, Any], output_dir: Path) -> Path:
        config_path = output_dir / CONFIG_FILENAME
        benedict(config, keypath_separator=None).to_toml(filepath=str(config_path))
        return config_path

    def execute(
        self,
        task: Task,
        lang: int,
        stdin_path: Path,
        answer_path: Path,
        working_dir: str,
        task_id: int = 0,
        case_id: int = 0,
    ) -> JudgeResult:
        """
        Run the artifact in ``working_dir`` for one case and judge its output.

        A sandbox that fails to run yields a judge error for this case
        only; unreadable sandbox artifacts abort the whole run with
        :class:`errors.SandboxArtifactError`.
        """
        with tempfile.TemporaryDirectory() as output_dir_name:
            output_dir = Path(output_dir_name)
            config = self.build_config(task, lang, stdin_path, output_dir)
            config_path = self.write_config(config, output_dir)

            try:
                res = self.runner.run_command(
                    [self.sandbox_path, "--env-path", str(config_path)],
                    cwd=working_dir,
                )
            except OSError as e:
                logger.error(f"failed to launch sandbox: {e}")
                return JudgeResult(
                    status=JudgeStatus.judge_error,
                    duration=-1,
                    memory=-1,
                    stdout="",
                    stderr=str(e),
                    task_id=task_id,
                    case_id=case_id,
                )

            if res.return_code != 0:
                logger.error(f"sandbox exited with return code {res.return_code}")
                return JudgeResult(
                    status=JudgeStatus.judge_error,
                    duration=-1,
                    memory=-1,
                    stdout="",
                    stderr=res.stderr.decode("utf-8", "replace"),
                    task_id=task_id,
                    case_id=case_id,
                )

            output_path = Path(config["output"])
            sandbox_output = parse_sandbox_output(
                _read_text(output_path, "sandbox result"), output_path
            )
            stdout = _read_text(Path(config["stdout"]), "stdout")
            stderr = _read_text(Path(config["stderr"]), "stderr")
            answer = _read_text(answer_path, "answer")

        status = sandbox_output["status"]
        if status not in SANDBOX_VERDICTS:
            if compare_output(answer, stdout):
                status = JudgeStatus.accepted
            else:
                status = JudgeStatus.wrong_answer

        return JudgeResult(
            status=status,
            duration=sandbox_output["duration"],
            memory=sandbox_output["memory"],
            stdout=stdout,
            stderr=stderr,
            task_id=task_id,
            case_id=case_id,
        )
