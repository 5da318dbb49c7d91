"""Assignment Schemas — assignments, submissions and grading.

Invariants:
    - A new assignment is draft or published, never closed
    - Naive deadlines are read as UTC
    - GradeRequest.grade: 0-100
    - AssignmentUpdate only forwards the fields the client actually sent
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from commonroom.core.domain_types import AssignmentStatus, SubmissionStatus
from commonroom.core.enforce_lifecycle import MAX_GRADE


def _as_utc(v: datetime | None) -> datetime | None:
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class AssignmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field("", max_length=20_000)
    deadline: datetime | None = None
    status: Literal["draft", "published"] = "draft"

    @field_validator("deadline")
    @classmethod
    def deadline_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


class AssignmentUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=20_000)
    deadline: datetime | None = None
    status: AssignmentStatus | None = None

    @field_validator("deadline")
    @classmethod
    def deadline_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    def changes(self) -> dict:
        """Explicitly sent fields; a sent null deadline clears it."""
        data = self.model_dump(exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k == "deadline"}


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_by: str
    title: str
    description: str
    status: AssignmentStatus
    deadline: datetime | None = None
    submission_count: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubmissionCreate(BaseModel):
    assignment_id: str = Field(min_length=1, max_length=128)
    content: str = Field("", max_length=50_000)
    attachments: list[str] = Field(default_factory=list, max_length=20)


class GradeRequest(BaseModel):
    grade: float = Field(ge=0, le=MAX_GRADE)
    feedback: str = Field("", max_length=10_000)


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    assignment_id: str
    student_id: str
    content: str
    attachments: list[str]
    submitted_at: datetime | None = None
    status: SubmissionStatus
    grade: float | None = None
    feedback: str = ""
    graded_at: datetime | None = None
    graded_by: str | None = None


class UploadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    path: str
    url: str
    kind: str
    size: int
    content_type: str
