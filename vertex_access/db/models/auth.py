"""Profile model - one row per identity from the external provider."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from vertex_access.db.base import Base
from vertex_access.db.enums import Role


class Profile(Base):
    """
    Application profile for an authenticated subject.

    `id` is the identity provider's subject id (not generated here).
    Created with role=client when the identity is created. `role` is kept as a
    plain string so rows with a missing/unknown role can be detected at
    resolution time instead of being silently coerced.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    role: Mapped[str | None] = mapped_column(
        String(50), default=Role.CLIENT.value, nullable=True
    )
    xp_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    referral_code: Mapped[str | None] = mapped_column(
        String(50), unique=True, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )
