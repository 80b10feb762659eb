"""Profile schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from vertex_access.db.enums import Role


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    role: str | None = None
    xp_points: int = 0
    created_at: datetime | None = None


class ProfileUpdate(BaseModel):
    """Partial update. `role` is accepted here only so the policy can reject it."""

    full_name: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = Field(default=None, max_length=500)
    role: Role | None = None


class RoleUpdate(BaseModel):
    role: Role
