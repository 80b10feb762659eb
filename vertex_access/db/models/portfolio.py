"""Portfolio showcase items (public read, staff write)."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from vertex_access.db.base import Base


class PortfolioItem(Base):
    __tablename__ = "portfolio"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    images: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    live_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
