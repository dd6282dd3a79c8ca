import io
import shutil
import tempfile
import threading
import zipfile
import zlib
from pathlib import Path
from typing import Dict, Tuple

from loguru import logger

from noj.judger import errors
from noj.judger.schemas import Problem
from noj.judger.storage import Storage


def case_dir_name(task_index: int, case_index: int) -> str:
    return f"{task_index:02d}{case_index:02d}"


class TestCaseCache:
    """
    Local cache of extracted test case archives, one directory per problem.

    A problem is downloaded and extracted at most once per cache. First
    provisioning of the same problem from several threads is serialized
    by a per-problem lock; across processes, extraction happens in a
    scratch directory that is renamed into place, so a half-extracted
    tree is never visible under the problem directory.
    """

    __test__ = False  # not a pytest test class

    def __init__(self, root: str, storage: Storage):
        # the sandbox runs in a scratch cwd, so case paths must be absolute
        self.root = Path(root).resolve()
        self.storage = storage
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_lock = threading.Lock()

    def _lock_for(self, problem_id: int) -> threading.Lock:
        with self._locks_lock:
            if problem_id not in self._locks:
                self._locks[problem_id] = threading.Lock()
            return self._locks[problem_id]

    def problem_dir(self, problem_id: int) -> Path:
        return self.root / str(problem_id)

    def case_paths(
        self, problem_id: int, task_index: int, case_index: int
    ) -> Tuple[Path, Path]:
        case_dir = (
            self.problem_dir(problem_id)
            / "test-case"
            / case_dir_name(task_index, case_index)
        )
        return case_dir / "STDIN", case_dir / "STDOUT"

    def provision(self, problem: Problem) -> Path:
        """
        Make sure the test cases of ``problem`` are extracted locally and
        return the absolute problem directory.

        :raises errors.NoTestCaseError: the problem has no archive.
        :raises errors.BadTestCaseError: the archive is not a valid zip.
        """
        problem_dir = self.problem_dir(problem.id)
        with self._lock_for(problem.id):
            if not problem_dir.exists():
                if problem.test_case_archive is None:
                    raise errors.NoTestCaseError(
                        f"problem {problem.id} has no test case"
                    )
                self._download_and_extract(
                    problem.id, problem.test_case_archive, problem_dir
                )
        return problem_dir.resolve()

    def _download_and_extract(
        self, problem_id: int, archive: str, problem_dir: Path
    ) -> None:
        content = self.storage.download(archive)

        self.root.mkdir(parents=True, exist_ok=True)
        scratch_dir = Path(tempfile.mkdtemp(prefix=f".{problem_id}-", dir=self.root))
        try:
            try:
                with zipfile.ZipFile(io.BytesIO(content)) as problem_zip:
                    problem_zip.extractall(scratch_dir)
            except (zipfile.BadZipFile, zlib.error) as e:
                raise errors.BadTestCaseError(
                    f"bad test case archive for problem {problem_id}: {e}"
                ) from e

            try:
                scratch_dir.rename(problem_dir)
            except OSError:
                # another worker finished first, keep its copy
                if not problem_dir.exists():
                    raise
                logger.info(f"test case of problem {problem_id} extracted concurrently")
                return
        finally:
            if scratch_dir.exists():
                shutil.rmtree(scratch_dir, ignore_errors=True)

        logger.info(
            f"extract problem test case: problem_id={problem_id}, "
            f"test_case_archive={archive}"
        )
