"""Capability Check — tests for the single authorize() gate.

Tests cover:
    - Role rules (create assignment, submit, grade, set role)
    - Suspended/banned callers may read but not write
    - Banned targets are mutated only by admins
    - Participant, ownership and draft-visibility checks
    - Submission access with and without the owning assignment
    - Self-registration cannot claim the admin role
"""

import pytest

from commonroom.core.authorize import Caller, authorize
from commonroom.core.domain_types import Action, AssignmentStatus, Role, UserStatus
from commonroom.core.errors import ForbiddenError
from commonroom.core.records import Assignment, Conversation, Submission, UserProfile

STUDENT = Caller("stu", Role.STUDENT)
INSTRUCTOR = Caller("prof", Role.INSTRUCTOR)
ADMIN = Caller("root", Role.ADMIN)


def _assignment(status=AssignmentStatus.PUBLISHED, owner="prof"):
    return Assignment(id="a1", created_by=owner, status=status)


# ─── Role rules ──────────────────────────────────────────────────

def test_student_cannot_create_assignment():
    with pytest.raises(ForbiddenError) as exc:
        authorize(STUDENT, Action.CREATE_ASSIGNMENT)
    assert exc.value.http_status == 403
    assert exc.value.context.user_id == "stu"


def test_instructor_and_admin_create_assignment():
    authorize(INSTRUCTOR, Action.CREATE_ASSIGNMENT)
    authorize(ADMIN, Action.CREATE_ASSIGNMENT)


def test_only_students_submit():
    authorize(STUDENT, Action.SUBMIT)
    with pytest.raises(ForbiddenError):
        authorize(INSTRUCTOR, Action.SUBMIT)


def test_only_admin_sets_roles():
    target = UserProfile(id="x")
    authorize(ADMIN, Action.SET_USER_ROLE, target)
    with pytest.raises(ForbiddenError):
        authorize(INSTRUCTOR, Action.SET_USER_ROLE, target)


# ─── Account status ──────────────────────────────────────────────

@pytest.mark.parametrize("status", [UserStatus.SUSPENDED, UserStatus.BANNED])
def test_inactive_caller_cannot_write(status):
    caller = Caller("stu", Role.STUDENT, status)
    with pytest.raises(ForbiddenError):
        authorize(caller, Action.FOLLOW, UserProfile(id="x"))
    with pytest.raises(ForbiddenError):
        authorize(caller, Action.RATE_RECIPE)


def test_suspended_caller_can_still_read_own_conversation():
    caller = Caller("stu", Role.STUDENT, UserStatus.SUSPENDED)
    authorize(caller, Action.READ_CONVERSATION, Conversation(id="c", participants=["stu", "x"]))


# ─── Target users ────────────────────────────────────────────────

def test_banned_target_only_mutated_by_admin():
    banned = UserProfile(id="b", status=UserStatus.BANNED)
    with pytest.raises(ForbiddenError):
        authorize(STUDENT, Action.FOLLOW, banned)
    with pytest.raises(ForbiddenError):
        authorize(INSTRUCTOR, Action.SET_USER_STATUS, banned)
    authorize(ADMIN, Action.SET_USER_STATUS, banned)


def test_instructor_sets_status_of_students_only():
    authorize(INSTRUCTOR, Action.SET_USER_STATUS, UserProfile(id="s", role=Role.STUDENT))
    with pytest.raises(ForbiddenError):
        authorize(INSTRUCTOR, Action.SET_USER_STATUS, UserProfile(id="p2", role=Role.INSTRUCTOR))


# ─── Conversations ───────────────────────────────────────────────

def test_non_participant_cannot_send_even_as_admin():
    conv = Conversation(id="c1", participants=["a", "b"])
    with pytest.raises(ForbiddenError):
        authorize(ADMIN, Action.SEND_MESSAGE, conv)
    authorize(Caller("a"), Action.SEND_MESSAGE, conv)


# ─── Assignments ─────────────────────────────────────────────────

def test_manage_assignment_owner_or_admin():
    authorize(INSTRUCTOR, Action.MANAGE_ASSIGNMENT, _assignment())
    authorize(ADMIN, Action.MANAGE_ASSIGNMENT, _assignment())
    with pytest.raises(ForbiddenError):
        authorize(Caller("other", Role.INSTRUCTOR), Action.MANAGE_ASSIGNMENT, _assignment())


def test_draft_hidden_from_students():
    with pytest.raises(ForbiddenError):
        authorize(STUDENT, Action.VIEW_ASSIGNMENT, _assignment(AssignmentStatus.DRAFT))
    authorize(STUDENT, Action.VIEW_ASSIGNMENT, _assignment(AssignmentStatus.PUBLISHED))
    authorize(INSTRUCTOR, Action.VIEW_ASSIGNMENT, _assignment(AssignmentStatus.DRAFT))


def test_grade_requires_assignment_owner():
    with pytest.raises(ForbiddenError):
        authorize(Caller("other", Role.INSTRUCTOR), Action.GRADE, _assignment())
    authorize(INSTRUCTOR, Action.GRADE, _assignment())


# ─── Submissions ─────────────────────────────────────────────────

def test_student_sees_only_own_submission():
    own = Submission(id="s1", assignment_id="a1", student_id="stu")
    other = Submission(id="s2", assignment_id="a1", student_id="someone")
    authorize(STUDENT, Action.VIEW_SUBMISSION, own, assignment=_assignment())
    with pytest.raises(ForbiddenError):
        authorize(STUDENT, Action.VIEW_SUBMISSION, other, assignment=_assignment())


def test_instructor_denied_when_assignment_deleted():
    sub = Submission(id="s1", assignment_id="gone", student_id="stu")
    with pytest.raises(ForbiddenError):
        authorize(INSTRUCTOR, Action.DELETE_SUBMISSION, sub, assignment=None)
    authorize(ADMIN, Action.DELETE_SUBMISSION, sub, assignment=None)


# ─── Registration ────────────────────────────────────────────────

def test_self_registration_cannot_claim_admin():
    authorize(Caller("new"), Action.REGISTER_PROFILE, Role.INSTRUCTOR)
    with pytest.raises(ForbiddenError):
        authorize(Caller("new"), Action.REGISTER_PROFILE, Role.ADMIN)
