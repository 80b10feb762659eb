"""Order and message schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from vertex_access.db.enums import DEFAULT_ORDER_CURRENCY, OrderStatus


class OrderCreate(BaseModel):
    service_type: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    currency: str = Field(default=DEFAULT_ORDER_CURRENCY, min_length=3, max_length=3)
    milestones: list[dict] = Field(default_factory=list)


class OrderUpdate(BaseModel):
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    milestones: list[dict] | None = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: UUID
    service_type: str
    description: str | None = None
    status: OrderStatus
    claimed_by: UUID | None = None
    price: Decimal | None = None
    currency: str
    milestones: list[dict] = Field(default_factory=list)
    created_at: datetime | None = None


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    sender_id: UUID
    content: str
    is_system_message: bool
    created_at: datetime | None = None
