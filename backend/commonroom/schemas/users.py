"""User Schemas — profile registration and administration payloads.

Invariants:
    - Role and status values are the core enums; anything else is a 400
    - Public profiles never carry e-mail or account status
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from commonroom.core.domain_types import Role, UserStatus


class ProfileRegister(BaseModel):
    """First sign-in: name and the requested role (admin only via an admin)."""
    name: str = Field(min_length=1, max_length=100)
    role: Role = Role.STUDENT

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class StatusUpdate(BaseModel):
    status: UserStatus


class RoleUpdate(BaseModel):
    role: Role


class PublicProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    role: Role
    bio: str = ""
    avatar_url: str = ""
    followers: list[str] = []
    following: list[str] = []


class ProfileResponse(PublicProfile):
    """The caller's own profile, or any profile as seen by an admin."""
    email: str
    status: UserStatus
    created_at: datetime | None = None
    last_login: datetime | None = None
