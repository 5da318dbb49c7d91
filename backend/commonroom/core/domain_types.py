"""Domain Types — enums shared by every component.

Invariants:
    - User ids are the identity provider's subject, stable for the life of the user
    - All valid states encoded as Enums — no raw string matching in rules
    - Lifecycle enums that advance define their order via .rank

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    """Platform roles. Stored profiles without a role load as STUDENT."""
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class UserStatus(str, Enum):
    """Account status. Stored profiles without a status load as ACTIVE."""
    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"


class AssignmentStatus(str, Enum):
    """Assignment lifecycle: draft -> published -> closed, never backward."""
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"

    @property
    def rank(self) -> int:
        return _ASSIGNMENT_ORDER.index(self)


_ASSIGNMENT_ORDER = [
    AssignmentStatus.DRAFT, AssignmentStatus.PUBLISHED, AssignmentStatus.CLOSED,
]


class SubmissionStatus(str, Enum):
    SUBMITTED = "submitted"
    GRADED = "graded"


class MessageStatus(str, Enum):
    """Message delivery status: sent -> delivered -> read."""
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"

    @property
    def rank(self) -> int:
        return _MESSAGE_ORDER.index(self)


_MESSAGE_ORDER = [MessageStatus.SENT, MessageStatus.DELIVERED, MessageStatus.READ]


class NotificationType(str, Enum):
    FOLLOW = "follow"
    MESSAGE = "message"
    SUBMISSION = "submission"
    GRADE = "grade"
    RATING = "rating"
    SYSTEM = "system"


class Action(str, Enum):
    """Capabilities checked by core/authorize.py."""
    FOLLOW = "follow"
    START_CONVERSATION = "start_conversation"
    SEND_MESSAGE = "send_message"
    READ_CONVERSATION = "read_conversation"
    CREATE_ASSIGNMENT = "create_assignment"
    MANAGE_ASSIGNMENT = "manage_assignment"
    VIEW_ASSIGNMENT = "view_assignment"
    SUBMIT = "submit"
    UPLOAD_SUBMISSION_FILE = "upload_submission_file"
    GRADE = "grade"
    VIEW_SUBMISSION = "view_submission"
    DELETE_SUBMISSION = "delete_submission"
    VIEW_PENDING = "view_pending"
    CREATE_RECIPE = "create_recipe"
    RATE_RECIPE = "rate_recipe"
    SET_USER_STATUS = "set_user_status"
    SET_USER_ROLE = "set_user_role"
    REGISTER_PROFILE = "register_profile"
