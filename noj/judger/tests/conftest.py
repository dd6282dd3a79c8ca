from pathlib import Path
from typing import List

import pytest

from noj.judger.provisioner import TestCaseCache
from noj.judger.schemas import Problem, Task
from noj.judger.storage import LocalStorage
from noj.judger.tests.utils import TOOLCHAINS_CONFIG, make_test_case
from noj.judger.toolchains import ToolchainsConfig, load_toolchains_config


@pytest.fixture
def toolchains() -> ToolchainsConfig:
    return load_toolchains_config(str(TOOLCHAINS_CONFIG))


@pytest.fixture
def tasks() -> List[Task]:
    return [
        Task(test_case_count=2, score=100, time_limit=1000, memory_limit=65536),
        Task(test_case_count=2, score=50, time_limit=1000, memory_limit=65536),
    ]


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(str(tmp_path / "storage"))


@pytest.fixture
def problem(tasks: List[Task], storage: LocalStorage) -> Problem:
    storage.upload("problem/test-case.zip", make_test_case(tasks))
    return Problem(id=1, tasks=tasks, test_case_archive="problem/test-case.zip")


@pytest.fixture
def test_cases(tmp_path: Path, storage: LocalStorage) -> TestCaseCache:
    return TestCaseCache(str(tmp_path / "problem"), storage)
