from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel

from noj.judger import errors
from noj.judger.runner import ProcessRunner
from noj.judger.schemas import CompletedCommand, JudgeResult, JudgeStatus
from noj.judger.toolchains import Toolchain

# nothing was executed on a compile error, these are placeholders
COMPILE_ERROR_DURATION = 1000
COMPILE_ERROR_MEMORY = 32768


class CompileResult(BaseModel):
    artifact: Optional[str] = None
    command: Optional[CompletedCommand] = None

    @property
    def success(self) -> bool:
        return self.artifact is not None

    def to_judge_result(self) -> JudgeResult:
        stdout = self.command.stdout if self.command else b""
        stderr = self.command.stderr if self.command else b""
        return JudgeResult(
            status=JudgeStatus.compile_error,
            duration=COMPILE_ERROR_DURATION,
            memory=COMPILE_ERROR_MEMORY,
            stdout=stdout.decode("utf-8", "replace"),
            stderr=stderr.decode("utf-8", "replace"),
        )


def write_source(toolchain: Toolchain, code: str, working_dir: str) -> Path:
    source_path = Path(working_dir) / toolchain.source
    source_path.write_text(code, encoding="utf-8")
    return source_path


class Compiler:
    def __init__(self, runner: ProcessRunner):
        self.runner = runner

    def compile(self, toolchain: Toolchain, code: str, working_dir: str) -> CompileResult:
        """
        Write ``code`` into ``working_dir`` and build it with the toolchain
        of its language. Interpreted languages skip the build and run the
        source file itself.
        """
        write_source(toolchain, code, working_dir)
        artifact = str(Path(working_dir) / toolchain.artifact_name)

        if not toolchain.needs_compile:
            logger.info(f"compile stage skipped for {toolchain.name}")
            return CompileResult(artifact=artifact)

        try:
            res = self.runner.run_command(toolchain.compile_args, cwd=working_dir)
        except OSError as e:
            raise errors.CompileLaunchError(
                f"failed to compile {toolchain.name} submission: {e}"
            ) from e

        if res.return_code != 0:
            logger.info(
                f"compile failed for {toolchain.name} with return code {res.return_code}"
            )
            return CompileResult(command=res)
        return CompileResult(artifact=artifact, command=res)
