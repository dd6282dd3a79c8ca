import subprocess
import tempfile
from typing import List, Optional

from loguru import logger

from noj.judger.schemas import CompletedCommand


class ProcessRunner:
    """
    Runs a host process to completion and captures its output.

    This is the only place where the judger spawns external programs,
    compilers and the sandbox binary alike. Tests substitute a fake
    object with the same ``run_command`` signature.

    No timeout is applied here: the sandbox binary is responsible for
    enforcing limits on untrusted programs, and toolchains are trusted
    to terminate.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    def run_command(self, args: List[str], cwd: Optional[str] = None) -> CompletedCommand:
        """
        Runs ``args`` in ``cwd`` and returns the exit code and the
        captured streams.

        :raises OSError: if the executable could not be started.
        """
        if self.debug:
            logger.debug(f"running: {args} in {cwd}")

        with tempfile.TemporaryFile() as runner_stdout, tempfile.TemporaryFile() as runner_stderr:
            completed = subprocess.run(
                args,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=runner_stdout,
                stderr=runner_stderr,
                check=False,
            )
            runner_stdout.seek(0)
            runner_stderr.seek(0)
            return CompletedCommand(
                return_code=completed.returncode,
                stdout=runner_stdout.read(),
                stderr=runner_stderr.read(),
            )
