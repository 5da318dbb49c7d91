"""Records — canonical shapes for every stored document, with repair-on-read.

Invariants:
    - from_raw() is PURE and total: any JSON value (including None or a partial
      dict) yields a structurally complete record; it never raises
    - Lists default to [], strings to "", enums to the documented default
      (Role.STUDENT, UserStatus.ACTIVE, AssignmentStatus.DRAFT, ...)
    - from_raw() runs on every load, never on write; to_raw() writes the record
      back whole, including unknown keys carried in `extra`
    - Id lists are de-duplicated preserving first occurrence (set semantics)
    - Timestamps are timezone-aware UTC datetimes in memory, ISO-8601 in storage

Design Decisions:
    - Dataclasses over pydantic models: repair must never fail, and pydantic
      validation is built to reject bad input rather than substitute defaults
    - `extra` keeps fields owned by other parts of the platform (portfolio,
      privacy settings, ...) so a load-mutate-store cycle never drops them
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from commonroom.core.domain_types import (
    AssignmentStatus,
    MessageStatus,
    NotificationType,
    Role,
    SubmissionStatus,
    UserStatus,
)

E = TypeVar("E", bound=Enum)


# ─── Field coercion (total functions) ───────────────────────────

def _as_dict(raw: Any) -> dict:
    return raw if isinstance(raw, dict) else {}


def _str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _id_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    seen: list[str] = []
    for item in value:
        if isinstance(item, str) and item and item not in seen:
            seen.append(item)
    return seen


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _enum(enum_cls: type[E], value: Any, default: E) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(0, int(value))


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def parse_instant(value: Any) -> datetime | None:
    """Parse a stored timestamp. Naive values are taken as UTC; junk yields None."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_instant(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _extra(raw: dict, known: set[str]) -> dict:
    return {k: v for k, v in raw.items() if k not in known}


# ─── UserProfile ─────────────────────────────────────────────────

@dataclass
class UserProfile:
    id: str
    email: str = ""
    name: str = ""
    role: Role = Role.STUDENT
    status: UserStatus = UserStatus.ACTIVE
    followers: list[str] = field(default_factory=list)
    following: list[str] = field(default_factory=list)
    bio: str = ""
    avatar_url: str = ""
    created_at: datetime | None = None
    last_login: datetime | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any, fallback_id: str = "") -> "UserProfile":
        """Repair a stored profile. The stored id wins unless missing/blank."""
        data = _as_dict(raw)
        return cls(
            id=_str(data.get("id")) or fallback_id,
            email=_str(data.get("email")),
            name=_str(data.get("name")),
            role=_enum(Role, data.get("role"), Role.STUDENT),
            status=_enum(UserStatus, data.get("status"), UserStatus.ACTIVE),
            followers=_id_list(data.get("followers")),
            following=_id_list(data.get("following")),
            bio=_str(data.get("bio")),
            avatar_url=_str(data.get("avatar_url")),
            created_at=parse_instant(data.get("created_at")),
            last_login=parse_instant(data.get("last_login")),
            extra=_extra(data, _USER_FIELDS),
        )

    def to_raw(self) -> dict:
        return {
            **self.extra,
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "status": self.status.value,
            "followers": list(self.followers),
            "following": list(self.following),
            "bio": self.bio,
            "avatar_url": self.avatar_url,
            "created_at": format_instant(self.created_at),
            "last_login": format_instant(self.last_login),
        }


_USER_FIELDS = {f.name for f in fields(UserProfile)} - {"extra"}


# ─── Conversation & Message ──────────────────────────────────────

@dataclass
class MessageSummary:
    content: str
    sender_id: str
    timestamp: datetime | None

    @classmethod
    def from_raw(cls, raw: Any) -> "MessageSummary | None":
        data = _as_dict(raw)
        if not data:
            return None
        return cls(
            content=_str(data.get("content")),
            sender_id=_str(data.get("sender_id")),
            timestamp=parse_instant(data.get("timestamp")),
        )

    def to_raw(self) -> dict:
        return {
            "content": self.content,
            "sender_id": self.sender_id,
            "timestamp": format_instant(self.timestamp),
        }


@dataclass
class Conversation:
    id: str
    participants: list[str] = field(default_factory=list)
    last_message: MessageSummary | None = None
    created_at: datetime | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any, fallback_id: str = "") -> "Conversation":
        data = _as_dict(raw)
        participants = data.get("participants")
        if isinstance(participants, list):
            # Older records embed participant objects instead of ids
            participants = [
                p.get("id") if isinstance(p, dict) else p for p in participants
            ]
        return cls(
            id=_str(data.get("id")) or fallback_id,
            participants=_id_list(participants),
            last_message=MessageSummary.from_raw(data.get("last_message")),
            created_at=parse_instant(data.get("created_at")),
            extra=_extra(data, _CONVERSATION_FIELDS),
        )

    def to_raw(self) -> dict:
        return {
            **self.extra,
            "id": self.id,
            "participants": list(self.participants),
            "last_message": self.last_message.to_raw() if self.last_message else None,
            "created_at": format_instant(self.created_at),
        }

    @property
    def last_activity(self) -> datetime | None:
        if self.last_message and self.last_message.timestamp:
            return self.last_message.timestamp
        return self.created_at


_CONVERSATION_FIELDS = {f.name for f in fields(Conversation)} - {"extra"}


@dataclass
class Message:
    id: str
    conversation_id: str = ""
    sender_id: str = ""
    content: str = ""
    timestamp: datetime | None = None
    status: MessageStatus = MessageStatus.SENT

    @classmethod
    def from_raw(cls, raw: Any, fallback_id: str = "") -> "Message":
        data = _as_dict(raw)
        return cls(
            id=_str(data.get("id")) or fallback_id,
            conversation_id=_str(data.get("conversation_id")),
            sender_id=_str(data.get("sender_id")),
            content=_str(data.get("content")),
            timestamp=parse_instant(data.get("timestamp")),
            status=_enum(MessageStatus, data.get("status"), MessageStatus.SENT),
        )

    def to_raw(self) -> dict:
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "sender_id": self.sender_id,
            "content": self.content,
            "timestamp": format_instant(self.timestamp),
            "status": self.status.value,
        }

    def summary(self) -> MessageSummary:
        return MessageSummary(
            content=self.content, sender_id=self.sender_id, timestamp=self.timestamp,
        )


# ─── Assignment & Submission ─────────────────────────────────────

@dataclass
class Assignment:
    id: str
    created_by: str = ""
    title: str = ""
    description: str = ""
    status: AssignmentStatus = AssignmentStatus.DRAFT
    deadline: datetime | None = None
    submission_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any, fallback_id: str = "") -> "Assignment":
        data = _as_dict(raw)
        return cls(
            id=_str(data.get("id")) or fallback_id,
            created_by=_str(data.get("created_by")),
            title=_str(data.get("title")),
            description=_str(data.get("description")),
            status=_enum(AssignmentStatus, data.get("status"), AssignmentStatus.DRAFT),
            deadline=parse_instant(data.get("deadline")),
            submission_count=_count(data.get("submission_count")),
            created_at=parse_instant(data.get("created_at")),
            updated_at=parse_instant(data.get("updated_at")),
            extra=_extra(data, _ASSIGNMENT_FIELDS),
        )

    def to_raw(self) -> dict:
        return {
            **self.extra,
            "id": self.id,
            "created_by": self.created_by,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "deadline": format_instant(self.deadline),
            "submission_count": self.submission_count,
            "created_at": format_instant(self.created_at),
            "updated_at": format_instant(self.updated_at),
        }


_ASSIGNMENT_FIELDS = {f.name for f in fields(Assignment)} - {"extra"}


@dataclass
class Submission:
    id: str
    assignment_id: str = ""
    student_id: str = ""
    content: str = ""
    attachments: list[str] = field(default_factory=list)
    submitted_at: datetime | None = None
    status: SubmissionStatus = SubmissionStatus.SUBMITTED
    grade: float | None = None
    feedback: str = ""
    graded_at: datetime | None = None
    graded_by: str | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any, fallback_id: str = "") -> "Submission":
        data = _as_dict(raw)
        return cls(
            id=_str(data.get("id")) or fallback_id,
            assignment_id=_str(data.get("assignment_id")),
            student_id=_str(data.get("student_id")),
            content=_str(data.get("content")),
            attachments=_str_list(data.get("attachments")),
            submitted_at=parse_instant(data.get("submitted_at")),
            status=_enum(SubmissionStatus, data.get("status"), SubmissionStatus.SUBMITTED),
            grade=_number(data.get("grade")),
            feedback=_str(data.get("feedback")),
            graded_at=parse_instant(data.get("graded_at")),
            graded_by=_opt_str(data.get("graded_by")),
            extra=_extra(data, _SUBMISSION_FIELDS),
        )

    def to_raw(self) -> dict:
        return {
            **self.extra,
            "id": self.id,
            "assignment_id": self.assignment_id,
            "student_id": self.student_id,
            "content": self.content,
            "attachments": list(self.attachments),
            "submitted_at": format_instant(self.submitted_at),
            "status": self.status.value,
            "grade": self.grade,
            "feedback": self.feedback,
            "graded_at": format_instant(self.graded_at),
            "graded_by": self.graded_by,
        }


_SUBMISSION_FIELDS = {f.name for f in fields(Submission)} - {"extra"}


# ─── Recipe ──────────────────────────────────────────────────────

@dataclass
class RecipeRating:
    user_id: str
    rating: int
    comment: str = ""
    created_at: datetime | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> "RecipeRating | None":
        """None for entries that cannot be repaired (no user, rating out of range)."""
        data = _as_dict(raw)
        user_id = _str(data.get("user_id"))
        value = _number(data.get("rating"))
        if not user_id or value is None or not 1 <= value <= 5:
            return None
        return cls(
            user_id=user_id,
            rating=int(value),
            comment=_str(data.get("comment")),
            created_at=parse_instant(data.get("created_at")),
        )

    def to_raw(self) -> dict:
        return {
            "user_id": self.user_id,
            "rating": self.rating,
            "comment": self.comment,
            "created_at": format_instant(self.created_at),
        }


@dataclass
class Recipe:
    id: str
    author_id: str = ""
    title: str = ""
    description: str = ""
    ingredients: list[str] = field(default_factory=list)
    instructions: str = ""
    ratings: list[RecipeRating] = field(default_factory=list)
    created_at: datetime | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any, fallback_id: str = "") -> "Recipe":
        data = _as_dict(raw)
        entries = data.get("ratings") if isinstance(data.get("ratings"), list) else []
        # One rating per user; a later entry replaces an earlier one
        by_user: dict[str, RecipeRating] = {}
        for entry in entries:
            rating = RecipeRating.from_raw(entry)
            if rating:
                by_user.pop(rating.user_id, None)
                by_user[rating.user_id] = rating
        return cls(
            id=_str(data.get("id")) or fallback_id,
            author_id=_str(data.get("author_id")),
            title=_str(data.get("title")),
            description=_str(data.get("description")),
            ingredients=_str_list(data.get("ingredients")),
            instructions=_str(data.get("instructions")),
            ratings=list(by_user.values()),
            created_at=parse_instant(data.get("created_at")),
            extra=_extra(data, _RECIPE_FIELDS),
        )

    def to_raw(self) -> dict:
        return {
            **self.extra,
            "id": self.id,
            "author_id": self.author_id,
            "title": self.title,
            "description": self.description,
            "ingredients": list(self.ingredients),
            "instructions": self.instructions,
            "ratings": [r.to_raw() for r in self.ratings],
            "created_at": format_instant(self.created_at),
        }


_RECIPE_FIELDS = {f.name for f in fields(Recipe)} - {"extra"}


# ─── Notification ────────────────────────────────────────────────

@dataclass
class Notification:
    id: str
    user_id: str = ""
    type: NotificationType = NotificationType.SYSTEM
    title: str = ""
    message: str = ""
    related_id: str | None = None
    read: bool = False
    created_at: datetime | None = None
    read_at: datetime | None = None

    @classmethod
    def from_raw(cls, raw: Any, fallback_id: str = "") -> "Notification":
        data = _as_dict(raw)
        return cls(
            id=_str(data.get("id")) or fallback_id,
            user_id=_str(data.get("user_id")),
            type=_enum(NotificationType, data.get("type"), NotificationType.SYSTEM),
            title=_str(data.get("title")),
            message=_str(data.get("message")),
            related_id=_opt_str(data.get("related_id")),
            read=data.get("read") is True,
            created_at=parse_instant(data.get("created_at")),
            read_at=parse_instant(data.get("read_at")),
        )

    def to_raw(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "related_id": self.related_id,
            "read": self.read,
            "created_at": format_instant(self.created_at),
            "read_at": format_instant(self.read_at),
        }


def copy_record(record, **changes):
    """Shallow copy with changes; lists are copied so the original stays untouched."""
    copied = replace(record, **changes)
    for f in fields(copied):
        value = getattr(copied, f.name)
        if isinstance(value, list) and f.name not in changes:
            setattr(copied, f.name, list(value))
    return copied
