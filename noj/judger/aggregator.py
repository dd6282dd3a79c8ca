from typing import Dict, List, Optional, Sequence

from loguru import logger

from noj.judger.schemas import (
    AggregateResult,
    JudgeResult,
    JudgeStatus,
    SubmissionStatus,
    Task,
)

# The overall status is the *smallest* priority seen anywhere in the
# matrix, so one accepted case hides every failing one. Keep this table
# explicit instead of relying on enum ordering.
STATUS_PRIORITY: Dict[str, int] = {
    JudgeStatus.accepted.value: 0,
    JudgeStatus.wrong_answer.value: 1,
    JudgeStatus.compile_error.value: 2,
    JudgeStatus.time_limit_exceeded.value: 3,
    JudgeStatus.memory_limit_exceeded.value: 4,
    JudgeStatus.runtime_error.value: 5,
    JudgeStatus.judge_error.value: 6,
    JudgeStatus.output_limit_exceeded.value: 7,
}

PRIORITY_STATUS: Dict[int, SubmissionStatus] = {
    priority: SubmissionStatus(status) for status, priority in STATUS_PRIORITY.items()
}

# initial duration / memory before any case has been seen (i32::MAX)
UNSET_FIGURE = 2**31 - 1


def status_priority(status: str) -> Optional[int]:
    return STATUS_PRIORITY.get(str(status))


def task_score(task: Task, results: Sequence[JudgeResult]) -> int:
    if all(r.status == JudgeStatus.accepted for r in results):
        return task.score
    return 0


def aggregate(
    tasks: Sequence[Task], results: Sequence[Sequence[JudgeResult]]
) -> AggregateResult:
    """
    Reduce a judge result matrix into the submission level figures.

    ``results`` holds one row of case results per task, in task order.

    - score: sum of the weights of tasks whose cases are all accepted.
    - duration / memory: figures of the single fastest case in the whole
      matrix, less memory breaking ties.
    - status: the status with the smallest priority in the whole matrix;
      statuses without a priority are skipped.
    """
    duration = UNSET_FIGURE
    memory = UNSET_FIGURE
    score = 0
    status: Optional[int] = None

    for i, (task, rows) in enumerate(zip(tasks, results)):
        if len(rows) != task.test_case_count:
            logger.warning(
                f"result mismatch in task {i}: "
                f"expected {task.test_case_count} cases, got {len(rows)}"
            )

        score += task_score(task, rows)

        for r in rows:
            # faster, or as fast but less memory
            if r.duration < duration or (r.duration == duration and r.memory < memory):
                duration = r.duration
                memory = r.memory

            r_status = status_priority(r.status)
            if r_status is None:
                continue
            if status is None or r_status < status:
                status = r_status

    return AggregateResult(
        status=SubmissionStatus.pending if status is None else PRIORITY_STATUS[status],
        score=score,
        duration=duration,
        memory=memory,
    )


def fill_results(result: JudgeResult, tasks: Sequence[Task]) -> List[List[JudgeResult]]:
    """
    Replicate ``result`` into every (task, case) cell of the problem,
    used when nothing can be judged per case (e.g. a compile error).
    """
    all_results = []
    for i, task in enumerate(tasks):
        all_results.append(
            [
                result.copy(update={"task_id": i, "case_id": j})
                for j in range(task.test_case_count)
            ]
        )
    return all_results
