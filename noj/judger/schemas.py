from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class StrEnumMixin(str, Enum):
    def __str__(self) -> str:
        return self.value


class Language(StrEnumMixin, Enum):
    c = "c"
    cpp = "cpp"
    python = "python"


class JudgeStatus(StrEnumMixin, Enum):
    accepted = "AC"
    wrong_answer = "WA"
    compile_error = "CE"
    time_limit_exceeded = "TLE"
    memory_limit_exceeded = "MLE"
    runtime_error = "RE"
    judge_error = "JE"
    output_limit_exceeded = "OLE"


class SubmissionStatus(StrEnumMixin, Enum):
    pending = "Pending"  # not judged yet, or nothing to judge
    accepted = "AC"
    wrong_answer = "WA"
    compile_error = "CE"
    time_limit_exceeded = "TLE"
    memory_limit_exceeded = "MLE"
    runtime_error = "RE"
    judge_error = "JE"
    output_limit_exceeded = "OLE"


class CompletedCommand(BaseModel):
    return_code: int
    stdout: bytes
    stderr: bytes


class Task(BaseModel):
    test_case_count: int = Field(..., ge=0)
    score: int = Field(..., ge=0)
    time_limit: int = Field(..., ge=0)  # ms
    memory_limit: int = Field(..., ge=0)  # KB


class Problem(BaseModel):
    id: int
    tasks: List[Task] = []
    test_case_archive: Optional[str] = None


class JudgeResult(BaseModel):
    status: str
    duration: int  # ms
    memory: int  # KB
    stdout: str = ""
    stderr: str = ""
    task_id: int = 0
    case_id: int = 0


class AggregateResult(BaseModel):
    status: SubmissionStatus
    score: int
    duration: int
    memory: int


class SubmitResult(AggregateResult):
    results: List[List[JudgeResult]]


class Submission(BaseModel):
    id: int
    problem_id: int
    language: Language
    code: str = ""
    status: SubmissionStatus = SubmissionStatus.pending
    score: int = 0
    duration: int = 0
    memory: int = 0
    results: Optional[List[List[JudgeResult]]] = None
