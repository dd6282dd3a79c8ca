import asyncio
import platform
import subprocess
import sys
from typing import List

from loguru import logger
from pydantic_universal_settings import cli
from watchgod import watch

from noj.judger.config import settings

WORKER_COMMAND: List[str] = [sys.executable, "-m", "noj.judger.app"]


def use_uvloop() -> None:
    if platform.system() != "Windows":
        import uvloop

        asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())


def run_with_reload(path: str) -> None:
    # debug mode with a single worker: restart it when the source changes
    p = subprocess.Popen(WORKER_COMMAND)
    for changes in watch(path):
        logger.info(
            f"WatchGod detected file change in '{[change[1] for change in changes]}'. "
            "Reloading..."
        )
        p.terminate()
        p.wait()
        p = subprocess.Popen(WORKER_COMMAND)


@cli.command()
def main() -> None:
    from noj.judger.app import main as worker_main

    if platform.system() == "Windows" and settings.workers != 1:
        logger.error("only solo mode is supported on Windows, workers must be set to 1")
        sys.exit(-1)

    if settings.debug and settings.workers == 1:
        run_with_reload("noj/judger")
    else:
        use_uvloop()
        asyncio.run(worker_main())


if __name__ == "__main__":
    main()
