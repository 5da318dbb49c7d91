"""Capability Check — the single authorize(caller, action, resource) gate.

Invariants:
    - authorize() is PURE: returns None when allowed, raises ForbiddenError otherwise
    - Every service operation calls authorize() before its first write
    - Suspended and banned callers may read but never write
    - A banned user's record is mutated only by an admin
    - Admins pass every ownership check; no one passes participant checks by role

Design Decisions:
    - One table of role rules instead of per-endpoint branching; ownership rules
      need the resource, so they take it as an argument
"""

from dataclasses import dataclass

from commonroom.core.domain_types import Action, AssignmentStatus, Role, UserStatus
from commonroom.core.errors import ErrorContext, ForbiddenError
from commonroom.core.records import Assignment, Conversation, Submission, UserProfile


@dataclass(frozen=True)
class Caller:
    """Authenticated identity with the role/status read from its stored profile."""
    user_id: str
    role: Role = Role.STUDENT
    status: UserStatus = UserStatus.ACTIVE
    email_verified: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_profile(cls, profile: UserProfile, email_verified: bool = False) -> "Caller":
        return cls(
            user_id=profile.id, role=profile.role,
            status=profile.status, email_verified=email_verified,
        )


READ_ACTIONS = frozenset({
    Action.READ_CONVERSATION,
    Action.VIEW_ASSIGNMENT,
    Action.VIEW_SUBMISSION,
    Action.VIEW_PENDING,
})

ROLE_RULES: dict[Action, frozenset[Role]] = {
    Action.CREATE_ASSIGNMENT: frozenset({Role.INSTRUCTOR, Role.ADMIN}),
    Action.SUBMIT: frozenset({Role.STUDENT}),
    Action.UPLOAD_SUBMISSION_FILE: frozenset({Role.STUDENT, Role.INSTRUCTOR}),
    Action.GRADE: frozenset({Role.INSTRUCTOR, Role.ADMIN}),
    Action.VIEW_PENDING: frozenset({Role.INSTRUCTOR, Role.ADMIN}),
    Action.SET_USER_STATUS: frozenset({Role.INSTRUCTOR, Role.ADMIN}),
    Action.SET_USER_ROLE: frozenset({Role.ADMIN}),
}


def _deny(caller: Caller, action: Action, reason: str, resource_id: str | None = None):
    raise ForbiddenError(
        action.value, reason,
        ErrorContext(user_id=caller.user_id, resource_id=resource_id, operation=action.value),
    )


def authorize(
    caller: Caller,
    action: Action,
    resource: object | None = None,
    *,
    assignment: Assignment | None = None,
) -> None:
    """Allow or raise ForbiddenError.

    `resource` is the record the action targets (UserProfile, Conversation,
    Assignment, Submission, or a Role for REGISTER_PROFILE). Submission checks
    also take the owning `assignment`, which may be None once it was deleted.
    """
    if caller.status != UserStatus.ACTIVE and action not in READ_ACTIONS:
        _deny(caller, action, f"account is {caller.status.value}")

    allowed_roles = ROLE_RULES.get(action)
    if allowed_roles is not None and caller.role not in allowed_roles:
        _deny(caller, action, f"role '{caller.role.value}' lacks this capability")

    check = _OWNERSHIP_CHECKS.get(action)
    if check is not None:
        check(caller, action, resource, assignment)


# ─── Ownership checks ────────────────────────────────────────────

def _check_target_user(caller, action, target: UserProfile, _assignment) -> None:
    if target.status == UserStatus.BANNED and not caller.is_admin:
        _deny(caller, action, "target account is banned", target.id)


def _check_set_status(caller, action, target: UserProfile, _assignment) -> None:
    _check_target_user(caller, action, target, None)
    if caller.role == Role.INSTRUCTOR and target.role != Role.STUDENT:
        _deny(caller, action, "instructors may only update student accounts", target.id)


def _check_participant(caller, action, conversation: Conversation, _assignment) -> None:
    if caller.user_id not in conversation.participants:
        _deny(caller, action, "not a participant", conversation.id)


def _check_assignment_owner(caller, action, assignment: Assignment, _unused) -> None:
    if not caller.is_admin and assignment.created_by != caller.user_id:
        _deny(caller, action, "not the assignment owner", assignment.id)


def _check_view_assignment(caller, action, assignment: Assignment, _unused) -> None:
    if assignment.status != AssignmentStatus.DRAFT:
        return
    _check_assignment_owner(caller, action, assignment, None)


def _check_submission_access(
    caller, action, submission: Submission, assignment: Assignment | None,
) -> None:
    if caller.is_admin:
        return
    if caller.role == Role.STUDENT:
        if submission.student_id != caller.user_id:
            _deny(caller, action, "not your submission", submission.id)
        return
    if assignment is None or assignment.created_by != caller.user_id:
        _deny(caller, action, "not the assignment owner", submission.id)


def _check_register(caller, action, requested: Role, _assignment) -> None:
    if requested == Role.ADMIN and not caller.is_admin:
        _deny(caller, action, "admin roles are assigned by an admin")


_OWNERSHIP_CHECKS = {
    Action.FOLLOW: _check_target_user,
    Action.START_CONVERSATION: _check_target_user,
    Action.SET_USER_STATUS: _check_set_status,
    Action.SET_USER_ROLE: _check_target_user,
    Action.SEND_MESSAGE: _check_participant,
    Action.READ_CONVERSATION: _check_participant,
    Action.MANAGE_ASSIGNMENT: _check_assignment_owner,
    Action.VIEW_ASSIGNMENT: _check_view_assignment,
    Action.GRADE: _check_assignment_owner,
    Action.VIEW_SUBMISSION: _check_submission_access,
    Action.DELETE_SUBMISSION: _check_submission_access,
    Action.REGISTER_PROFILE: _check_register,
}
