"""Assignment Lifecycle Manager — assignments, submissions, grading.

Invariants:
    - Assignment status only moves forward: draft -> published -> closed
    - create_submission checks, in order: role, assignment exists, deadline,
      published, no existing (assignment, student) submission; then stores the
      Submission and only then re-reads the Assignment to bump submission_count
    - submission_count is a cache: +1 per created submission, -1 (floor 0) per
      deleted one, never recomputed here
    - Deleting an assignment leaves its submissions in place

Design Decisions:
    - Uniqueness is check-then-act over a prefix scan; two racing submits from
      the same student may both land (ADR: tolerate, no compare-and-swap)
    - Notifications to the owner (submit) and the student (grade) are sent after
      the writes and never fail the operation
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from commonroom.core.authorize import Caller, authorize
from commonroom.core.domain_types import (
    Action,
    AssignmentStatus,
    NotificationType,
    Role,
    SubmissionStatus,
)
from commonroom.core.enforce_lifecycle import (
    apply_grade,
    check_submission_window,
    check_transition,
    decrement_submission_count,
    find_submission,
    grading_stats,
    increment_submission_count,
    visible_assignments,
)
from commonroom.core.errors import (
    AlreadySubmittedError,
    ErrorContext,
    InvalidStateError,
    RequestValidationFailed,
)
from commonroom.core.records import Assignment, Submission, copy_record, parse_instant
from commonroom.services.notification_dispatcher import NotificationDispatcher
from commonroom.services.record_store import RecordStore, new_id, utc_now

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)
_UPDATABLE_FIELDS = frozenset({"title", "description", "deadline", "status"})


def _newest(records: list, attr: str) -> list:
    return sorted(records, key=lambda r: (getattr(r, attr) or _EPOCH, r.id), reverse=True)


def _require_title(title: str) -> str:
    stripped = title.strip()
    if not stripped:
        raise RequestValidationFailed("Title is required", "title")
    return stripped


class AssignmentLifecycleManager:
    """Assignment publish state, submissions under deadline/uniqueness, grading."""

    def __init__(
        self,
        records: RecordStore,
        notifier: NotificationDispatcher,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ):
        self.records = records
        self.notifier = notifier
        self.clock = clock
        self.id_factory = id_factory

    # ─── Assignments ─────────────────────────────────────────────

    async def create_assignment(
        self,
        caller: Caller,
        title: str,
        description: str = "",
        deadline: datetime | None = None,
        status: AssignmentStatus = AssignmentStatus.DRAFT,
    ) -> Assignment:
        authorize(caller, Action.CREATE_ASSIGNMENT)
        if status == AssignmentStatus.CLOSED:
            raise InvalidStateError("A new assignment must be draft or published")
        now = self.clock()
        assignment = Assignment(
            id=self.id_factory(),
            created_by=caller.user_id,
            title=_require_title(title),
            description=description,
            status=status,
            deadline=parse_instant(deadline),
            submission_count=0,
            created_at=now,
            updated_at=now,
        )
        await self.records.store_assignment(assignment)
        logger.info(
            f"Assignment created ({status.value})",
            extra={"user_id": caller.user_id, "assignment_id": assignment.id,
                   "operation": "create_assignment"},
        )
        return assignment

    async def update_assignment(
        self, caller: Caller, assignment_id: str, changes: dict[str, Any],
    ) -> Assignment:
        """Apply title/description/deadline/status changes; status only moves forward."""
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise RequestValidationFailed(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}", sorted(unknown)[0],
            )
        assignment = await self.records.require_assignment(assignment_id)
        authorize(caller, Action.MANAGE_ASSIGNMENT, assignment)

        updates = dict(changes)
        if "title" in updates:
            updates["title"] = _require_title(updates["title"])
        if "deadline" in updates:
            updates["deadline"] = parse_instant(updates["deadline"])
        if "status" in updates:
            updates["status"] = AssignmentStatus(updates["status"])
            check_transition(assignment.status, updates["status"])
        updated = copy_record(assignment, **updates, updated_at=self.clock())
        await self.records.store_assignment(updated)
        logger.info(
            f"Assignment updated: {', '.join(sorted(updates))}",
            extra={"user_id": caller.user_id, "assignment_id": assignment_id,
                   "operation": "update_assignment"},
        )
        return updated

    async def publish_assignment(self, caller: Caller, assignment_id: str) -> Assignment:
        return await self._transition(caller, assignment_id, AssignmentStatus.PUBLISHED)

    async def close_assignment(self, caller: Caller, assignment_id: str) -> Assignment:
        return await self._transition(caller, assignment_id, AssignmentStatus.CLOSED)

    async def _transition(
        self, caller: Caller, assignment_id: str, target: AssignmentStatus,
    ) -> Assignment:
        assignment = await self.records.require_assignment(assignment_id)
        authorize(caller, Action.MANAGE_ASSIGNMENT, assignment)
        if not check_transition(assignment.status, target):
            return assignment
        updated = copy_record(assignment, status=target, updated_at=self.clock())
        await self.records.store_assignment(updated)
        logger.info(
            f"Assignment {assignment.status.value} -> {target.value}",
            extra={"user_id": caller.user_id, "assignment_id": assignment_id,
                   "operation": "transition_assignment"},
        )
        return updated

    async def delete_assignment(self, caller: Caller, assignment_id: str) -> None:
        assignment = await self.records.require_assignment(assignment_id)
        authorize(caller, Action.MANAGE_ASSIGNMENT, assignment)
        await self.records.delete_assignment(assignment_id)
        logger.info(
            "Assignment deleted; submissions left in place",
            extra={"user_id": caller.user_id, "assignment_id": assignment_id,
                   "operation": "delete_assignment"},
        )

    async def get_assignment(self, caller: Caller, assignment_id: str) -> Assignment:
        assignment = await self.records.require_assignment(assignment_id)
        authorize(caller, Action.VIEW_ASSIGNMENT, assignment)
        return assignment

    async def list_assignments(self, caller: Caller) -> list[Assignment]:
        assignments = await self.records.scan_assignments()
        return _newest(
            visible_assignments(assignments, caller.user_id, caller.role), "created_at",
        )

    # ─── Submissions ─────────────────────────────────────────────

    async def create_submission(
        self,
        caller: Caller,
        assignment_id: str,
        content: str = "",
        attachments: list[str] | None = None,
    ) -> Submission:
        authorize(caller, Action.SUBMIT)
        assignment = await self.records.require_assignment(assignment_id)
        now = self.clock()
        check_submission_window(assignment, now)

        existing = find_submission(
            await self.records.scan_submissions(), assignment_id, caller.user_id,
        )
        if existing is not None:
            raise AlreadySubmittedError(
                assignment_id, caller.user_id,
                ErrorContext(user_id=caller.user_id, resource_id=existing.id,
                             operation="create_submission"),
            )

        submission = Submission(
            id=self.id_factory(),
            assignment_id=assignment_id,
            student_id=caller.user_id,
            content=content,
            attachments=list(attachments or []),
            submitted_at=now,
            status=SubmissionStatus.SUBMITTED,
        )
        await self._store_submission_and_count(submission, now)

        if assignment.created_by:
            await self.notifier.notify(
                assignment.created_by, NotificationType.SUBMISSION, "New submission",
                f"A student submitted work for '{assignment.title}'",
                related_id=submission.id,
            )
        return submission

    async def _store_submission_and_count(self, submission: Submission, now: datetime) -> None:
        """Submission record, then a fresh read of the Assignment to bump the count."""
        await self.records.store_submission(submission)
        fresh = await self.records.load_assignment(submission.assignment_id)
        if fresh is not None:
            await self.records.store_assignment(increment_submission_count(fresh, now))
        logger.info(
            "Submission created",
            extra={"user_id": submission.student_id,
                   "assignment_id": submission.assignment_id,
                   "submission_id": submission.id, "operation": "create_submission"},
        )

    async def grade_submission(
        self, caller: Caller, submission_id: str, grade: float, feedback: str = "",
    ) -> Submission:
        submission = await self.records.require_submission(submission_id)
        assignment = await self.records.require_assignment(submission.assignment_id)
        authorize(caller, Action.GRADE, assignment)

        graded = apply_grade(submission, grade, feedback, caller.user_id, self.clock())
        await self.records.store_submission(graded)
        logger.info(
            f"Submission graded ({graded.grade:g})",
            extra={"user_id": caller.user_id, "assignment_id": assignment.id,
                   "submission_id": submission_id, "operation": "grade_submission"},
        )

        await self.notifier.notify(
            submission.student_id, NotificationType.GRADE, "Submission graded",
            f"Your submission for '{assignment.title}' received {graded.grade:g}",
            related_id=submission_id,
        )
        return graded

    async def delete_submission(self, caller: Caller, submission_id: str) -> None:
        submission = await self.records.require_submission(submission_id)
        assignment = await self.records.load_assignment(submission.assignment_id)
        authorize(caller, Action.DELETE_SUBMISSION, submission, assignment=assignment)
        await self._delete_submission_and_count(submission)

    async def _delete_submission_and_count(self, submission: Submission) -> None:
        """Submission record, then a fresh read of the Assignment to drop the count."""
        await self.records.delete_submission(submission.id)
        fresh = await self.records.load_assignment(submission.assignment_id)
        if fresh is not None:
            await self.records.store_assignment(
                decrement_submission_count(fresh, self.clock()),
            )
        logger.info(
            "Submission deleted",
            extra={"user_id": submission.student_id,
                   "assignment_id": submission.assignment_id,
                   "submission_id": submission.id, "operation": "delete_submission"},
        )

    async def get_submission(self, caller: Caller, submission_id: str) -> Submission:
        submission = await self.records.require_submission(submission_id)
        assignment = await self.records.load_assignment(submission.assignment_id)
        authorize(caller, Action.VIEW_SUBMISSION, submission, assignment=assignment)
        return submission

    async def list_submissions(
        self, caller: Caller, assignment_id: str | None = None,
    ) -> list[Submission]:
        """Students see their own, instructors those for their assignments, admins all."""
        submissions = await self.records.scan_submissions()
        if assignment_id is not None:
            submissions = [s for s in submissions if s.assignment_id == assignment_id]
        if caller.role == Role.STUDENT:
            submissions = [s for s in submissions if s.student_id == caller.user_id]
        elif caller.role == Role.INSTRUCTOR:
            owned = await self._owned_assignment_ids(caller)
            submissions = [s for s in submissions if s.assignment_id in owned]
        return _newest(submissions, "submitted_at")

    async def pending_submissions(
        self, caller: Caller,
    ) -> tuple[list[Submission], dict]:
        """Ungraded submissions for the caller's assignments, plus grading stats."""
        authorize(caller, Action.VIEW_PENDING)
        owned = await self._owned_assignment_ids(caller)
        submissions = await self.records.scan_submissions()
        pending = [
            s for s in submissions
            if s.assignment_id in owned and s.status == SubmissionStatus.SUBMITTED
        ]
        stats = grading_stats(submissions, owned, self.clock())
        stats["pending"] = len(pending)
        return _newest(pending, "submitted_at"), stats

    async def _owned_assignment_ids(self, caller: Caller) -> set[str]:
        assignments = await self.records.scan_assignments()
        if caller.is_admin:
            return {a.id for a in assignments}
        return {a.id for a in assignments if a.created_by == caller.user_id}
