"""Assignment Lifecycle Manager — service tests over the in-memory store.

Tests cover:
    - create_submission: stores the record, bumps submission_count, notifies owner
    - A second submission by the same student fails with AlreadySubmitted
    - now > deadline is DeadlinePassed whatever the status; drafts are InvalidState
    - Role and ownership: only students submit, only the owner/admin grades
    - Grading sets grade fields and notifies the student; regrading overwrites
    - delete_submission decrements with a floor of zero; orphaned submissions
      survive assignment deletion
    - Status transitions are forward-only; role-filtered listings; pending stats
"""

from datetime import timedelta

import pytest

from commonroom.core import keys
from commonroom.core.domain_types import (
    AssignmentStatus,
    NotificationType,
    Role,
    SubmissionStatus,
)
from commonroom.core.errors import (
    AlreadySubmittedError,
    DeadlinePassedError,
    ForbiddenError,
    InvalidStateError,
    ResourceNotFoundError,
)


@pytest.fixture
async def published(lifecycle, clock, instructor):
    return await lifecycle.create_assignment(
        instructor, "Essay", "Write 500 words",
        deadline=clock.now + timedelta(days=7),
        status=AssignmentStatus.PUBLISHED,
    )


# ─── Submissions ─────────────────────────────────────────────────

async def test_submission_increments_count_and_notifies_owner(
    lifecycle, kv, notifier, published, alice, instructor,
):
    submission = await lifecycle.create_submission(alice, published.id, "my essay")
    assert kv.raw(keys.submission_key(submission.id))["student_id"] == "alice"
    assert kv.raw(keys.assignment_key(published.id))["submission_count"] == 1

    inbox = await notifier.list_notifications(instructor)
    assert [n.type for n in inbox] == [NotificationType.SUBMISSION]


async def test_second_submission_already_submitted(lifecycle, kv, published, alice):
    await lifecycle.create_submission(alice, published.id, "first")
    with pytest.raises(AlreadySubmittedError) as exc:
        await lifecycle.create_submission(alice, published.id, "second")
    assert exc.value.http_status == 409
    assert kv.raw(keys.assignment_key(published.id))["submission_count"] == 1


async def test_other_students_may_submit(lifecycle, kv, published, alice, bob):
    await lifecycle.create_submission(alice, published.id)
    await lifecycle.create_submission(bob, published.id)
    assert kv.raw(keys.assignment_key(published.id))["submission_count"] == 2


@pytest.mark.parametrize("status", list(AssignmentStatus))
async def test_past_deadline_always_deadline_passed(lifecycle, kv, clock, alice, status):
    kv.put_raw("assignment:late", {
        "id": "late", "created_by": "prof", "status": status.value,
        "deadline": (clock.now - timedelta(minutes=1)).isoformat(),
    })
    with pytest.raises(DeadlinePassedError):
        await lifecycle.create_submission(alice, "late")
    assert not any(k.startswith("submission:") for k in kv.writes)


async def test_draft_is_invalid_state(lifecycle, instructor, alice):
    draft = await lifecycle.create_assignment(instructor, "Draft")
    with pytest.raises(InvalidStateError):
        await lifecycle.create_submission(alice, draft.id)


async def test_instructor_cannot_submit(lifecycle, published, instructor):
    with pytest.raises(ForbiddenError):
        await lifecycle.create_submission(instructor, published.id)


async def test_submit_to_missing_assignment(lifecycle, alice):
    with pytest.raises(ResourceNotFoundError):
        await lifecycle.create_submission(alice, "nope")


# ─── Grading ─────────────────────────────────────────────────────

async def test_grade_sets_fields_and_notifies_student(
    lifecycle, notifier, clock, published, alice, instructor,
):
    submission = await lifecycle.create_submission(alice, published.id)
    clock.advance(hours=2)
    graded = await lifecycle.grade_submission(instructor, submission.id, 92, "Great work")
    assert graded.status == SubmissionStatus.GRADED
    assert graded.grade == 92
    assert graded.graded_by == "prof"
    assert graded.graded_at == clock.now

    inbox = await notifier.list_notifications(alice)
    assert inbox[0].type == NotificationType.GRADE
    assert inbox[0].related_id == submission.id


async def test_regrade_by_admin_overwrites(lifecycle, kv, published, alice, instructor, admin):
    submission = await lifecycle.create_submission(alice, published.id)
    await lifecycle.grade_submission(instructor, submission.id, 60, "ok")
    await lifecycle.grade_submission(admin, submission.id, 75, "revised")
    stored = kv.raw(keys.submission_key(submission.id))
    assert stored["grade"] == 75
    assert stored["feedback"] == "revised"
    assert stored["graded_by"] == "root"


async def test_other_instructor_cannot_grade(lifecycle, seed_user, published, alice):
    other = seed_user("prof2", Role.INSTRUCTOR)
    submission = await lifecycle.create_submission(alice, published.id)
    with pytest.raises(ForbiddenError):
        await lifecycle.grade_submission(other, submission.id, 50)


# ─── Deletion ────────────────────────────────────────────────────

async def test_delete_submission_decrements(lifecycle, kv, published, alice):
    submission = await lifecycle.create_submission(alice, published.id)
    await lifecycle.delete_submission(alice, submission.id)
    assert kv.raw(keys.submission_key(submission.id)) is None
    assert kv.raw(keys.assignment_key(published.id))["submission_count"] == 0


async def test_delete_never_goes_below_zero(lifecycle, kv, published, alice):
    submission = await lifecycle.create_submission(alice, published.id)
    kv.put_raw(keys.assignment_key(published.id), {
        **kv.raw(keys.assignment_key(published.id)), "submission_count": 0,
    })
    await lifecycle.delete_submission(alice, submission.id)
    assert kv.raw(keys.assignment_key(published.id))["submission_count"] == 0


async def test_student_cannot_delete_others_submission(lifecycle, published, alice, bob):
    submission = await lifecycle.create_submission(alice, published.id)
    with pytest.raises(ForbiddenError):
        await lifecycle.delete_submission(bob, submission.id)


async def test_deleting_assignment_keeps_submissions(
    lifecycle, kv, published, alice, instructor,
):
    submission = await lifecycle.create_submission(alice, published.id)
    await lifecycle.delete_assignment(instructor, published.id)
    assert kv.raw(keys.assignment_key(published.id)) is None
    assert kv.raw(keys.submission_key(submission.id)) is not None

    # the orphan can still be removed by its student, and nothing is decremented
    await lifecycle.delete_submission(alice, submission.id)
    assert kv.raw(keys.submission_key(submission.id)) is None


# ─── Assignment state ────────────────────────────────────────────

async def test_transitions_forward_only(lifecycle, instructor):
    draft = await lifecycle.create_assignment(instructor, "Lab")
    published = await lifecycle.publish_assignment(instructor, draft.id)
    assert published.status == AssignmentStatus.PUBLISHED
    closed = await lifecycle.close_assignment(instructor, draft.id)
    assert closed.status == AssignmentStatus.CLOSED
    with pytest.raises(InvalidStateError):
        await lifecycle.publish_assignment(instructor, draft.id)
    with pytest.raises(InvalidStateError):
        await lifecycle.update_assignment(instructor, draft.id, {"status": "draft"})


async def test_update_keeps_counter(lifecycle, kv, published, alice, instructor):
    await lifecycle.create_submission(alice, published.id)
    updated = await lifecycle.update_assignment(
        instructor, published.id, {"title": "Essay v2", "deadline": None},
    )
    assert updated.title == "Essay v2"
    assert updated.deadline is None
    assert kv.raw(keys.assignment_key(published.id))["submission_count"] == 1


async def test_student_cannot_create_assignment(lifecycle, alice):
    with pytest.raises(ForbiddenError):
        await lifecycle.create_assignment(alice, "Nope")


async def test_listing_is_role_filtered(lifecycle, clock, published, instructor, alice, admin):
    draft = await lifecycle.create_assignment(instructor, "Hidden")
    assert [a.id for a in await lifecycle.list_assignments(alice)] == [published.id]
    assert {a.id for a in await lifecycle.list_assignments(instructor)} == {published.id, draft.id}
    assert len(await lifecycle.list_assignments(admin)) == 2
    with pytest.raises(ForbiddenError):
        await lifecycle.get_assignment(alice, draft.id)


async def test_submission_listing_and_pending_stats(
    lifecycle, published, alice, bob, instructor,
):
    first = await lifecycle.create_submission(alice, published.id)
    await lifecycle.create_submission(bob, published.id)
    await lifecycle.grade_submission(instructor, first.id, 80)

    assert [s.student_id for s in await lifecycle.list_submissions(alice)] == ["alice"]
    assert len(await lifecycle.list_submissions(instructor)) == 2

    pending, stats = await lifecycle.pending_submissions(instructor)
    assert [s.student_id for s in pending] == ["bob"]
    assert stats == {"graded_today": 1, "average_score": 80.0, "pending": 1}

    with pytest.raises(ForbiddenError):
        await lifecycle.pending_submissions(alice)
