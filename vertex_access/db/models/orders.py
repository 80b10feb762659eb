"""Order and order chat models."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vertex_access.db.base import Base
from vertex_access.db.enums import DEFAULT_ORDER_CURRENCY, DEFAULT_ORDER_STATUS


class Order(Base):
    """
    A service order placed by a client and worked on by staff.

    client_id: the client profile that created it (owner)
    claimed_by: staff profile that claimed it (null until claimed)
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_client", "client_id"),
        Index("idx_orders_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id"), nullable=False
    )
    service_type: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_ORDER_STATUS.value, nullable=False
    )
    claimed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id"), nullable=True
    )
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    currency: Mapped[str] = mapped_column(
        String(3), default=DEFAULT_ORDER_CURRENCY, nullable=False
    )
    milestones: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    messages: Mapped[list["Message"]] = relationship(
        back_populates="order", order_by="Message.created_at"
    )


class Message(Base):
    """Chat message attached to exactly one order."""

    __tablename__ = "messages"
    __table_args__ = (Index("idx_messages_order", "order_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id"), nullable=False
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_system_message: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    order: Mapped[Order] = relationship(back_populates="messages")
