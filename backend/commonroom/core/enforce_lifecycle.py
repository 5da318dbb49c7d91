"""Assignment Lifecycle Enforcement — state transitions, submission window, grading.

Invariants:
    - Assignment status is monotonic: draft -> published -> closed, never backward
    - The deadline check runs before the status check: now > deadline is always
      DeadlinePassed, whatever the status
    - A submission is accepted only while published and now <= deadline
      (an assignment with no deadline never expires)
    - submission_count changes by exactly one per call and never goes below zero
    - Grading is submitted -> graded; graded -> graded overwrites
    - All functions are PURE; `now` is always passed in
"""

from datetime import datetime

from commonroom.core.domain_types import AssignmentStatus, Role, SubmissionStatus
from commonroom.core.errors import (
    DeadlinePassedError,
    ErrorContext,
    InvalidStateError,
    RequestValidationFailed,
)
from commonroom.core.records import Assignment, Submission, copy_record

MAX_GRADE: float = 100.0


def check_transition(current: AssignmentStatus, target: AssignmentStatus) -> bool:
    """Validate a status change. Returns False for a no-op (same status)."""
    if target.rank < current.rank:
        raise InvalidStateError(
            f"Assignment cannot move from '{current.value}' back to '{target.value}'",
        )
    return target != current


def check_submission_window(assignment: Assignment, now: datetime) -> None:
    """Raise unless a new submission may be created at `now`."""
    ctx = ErrorContext(resource_id=assignment.id, operation="create_submission")
    if assignment.deadline is not None and now > assignment.deadline:
        raise DeadlinePassedError(assignment.deadline, ctx)
    if assignment.status != AssignmentStatus.PUBLISHED:
        raise InvalidStateError(
            f"Assignment is '{assignment.status.value}', not open for submissions", ctx,
        )


def find_submission(
    submissions: list[Submission], assignment_id: str, student_id: str,
) -> Submission | None:
    """First live submission for the (assignment, student) pair, oldest first."""
    matches = [
        s for s in submissions
        if s.assignment_id == assignment_id and s.student_id == student_id
    ]
    if not matches:
        return None
    return min(matches, key=lambda s: (s.submitted_at is None, s.submitted_at, s.id))


def increment_submission_count(assignment: Assignment, now: datetime) -> Assignment:
    return copy_record(
        assignment, submission_count=assignment.submission_count + 1, updated_at=now,
    )


def decrement_submission_count(assignment: Assignment, now: datetime) -> Assignment:
    """Floor at zero: a counter that already drifted low is never pushed negative."""
    return copy_record(
        assignment,
        submission_count=max(0, assignment.submission_count - 1),
        updated_at=now,
    )


def validate_grade(grade: float) -> float:
    if not 0 <= grade <= MAX_GRADE:
        raise RequestValidationFailed(
            f"Grade must be between 0 and {MAX_GRADE:g}", "grade",
        )
    return grade


def apply_grade(
    submission: Submission, grade: float, feedback: str, grader_id: str, now: datetime,
) -> Submission:
    return copy_record(
        submission,
        status=SubmissionStatus.GRADED,
        grade=validate_grade(grade),
        feedback=feedback,
        graded_at=now,
        graded_by=grader_id,
    )


def visible_assignments(
    assignments: list[Assignment], user_id: str, role: Role,
) -> list[Assignment]:
    """Students see published, instructors their own, admins everything."""
    if role == Role.ADMIN:
        return list(assignments)
    if role == Role.INSTRUCTOR:
        return [a for a in assignments if a.created_by == user_id]
    return [a for a in assignments if a.status == AssignmentStatus.PUBLISHED]


def grading_stats(
    submissions: list[Submission], assignment_ids: set[str], now: datetime,
) -> dict:
    """graded_today and average_score over graded submissions of the given assignments."""
    graded = [
        s for s in submissions
        if s.assignment_id in assignment_ids and s.status == SubmissionStatus.GRADED
    ]
    today = now.date()
    graded_today = sum(
        1 for s in graded if s.graded_at and s.graded_at.astimezone(now.tzinfo).date() == today
    )
    scores = [s.grade for s in graded if s.grade is not None]
    return {
        "graded_today": graded_today,
        "average_score": sum(scores) / len(scores) if scores else 0.0,
    }
