"""Portfolio schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from vertex_access.db.enums import PortfolioCategory


class PortfolioItemCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    category: PortfolioCategory
    description: str | None = None
    images: list[str] = Field(default_factory=list)
    live_url: str | None = Field(default=None, max_length=500)


class PortfolioItemUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    category: PortfolioCategory | None = None
    description: str | None = None
    images: list[str] | None = None
    live_url: str | None = Field(default=None, max_length=500)


class PortfolioItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    category: PortfolioCategory
    description: str | None = None
    images: list[str] = Field(default_factory=list)
    live_url: str | None = None
    created_at: datetime | None = None
