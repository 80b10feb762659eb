"""Order chat messages.

Both reads and sends are joined against the parent order: the caller must be
the order's client or a staff member.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from vertex_access.core.policies import Entity, Operation, enforce, filter_visible
from vertex_access.db.enums import Role
from vertex_access.db.models import Message, Order

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 5000


def list_messages(
    db: Session,
    subject_id: UUID | None,
    role: Role | str | None,
    order_id: UUID,
) -> list[Message]:
    """Messages on an order, oldest first. Empty if the caller may not see them."""
    order = db.get(Order, order_id)
    if order is None:
        return []
    rows = db.scalars(
        select(Message)
        .where(Message.order_id == order_id)
        .order_by(Message.created_at, Message.id)
    ).all()
    return filter_visible(Entity.MESSAGE, subject_id, role, rows, orders={order.id: order})


def _build_message(order: Order, sender_id: UUID, content: str, is_system: bool) -> Message:
    content = (content or "").strip()
    if not content:
        raise ValueError("Message content is required")
    if len(content) > MAX_MESSAGE_LENGTH:
        raise ValueError(f"Message exceeds {MAX_MESSAGE_LENGTH} characters")
    return Message(
        order_id=order.id,
        sender_id=sender_id,
        content=content,
        is_system_message=is_system,
    )


def send_message(
    db: Session,
    subject_id: UUID,
    role: Role | str | None,
    order_id: UUID,
    content: str,
) -> Message:
    """
    Post a chat message as the calling subject.

    Raises:
        PolicyDenied: order missing, or caller not a participant
        ValueError: empty or oversized content
    """
    order = db.get(Order, order_id)
    if order is None:
        # Same answer as "not a participant" so existence is not revealed.
        enforce(Entity.MESSAGE, Operation.INSERT, subject_id, role, None, order=None)

    message = _build_message(order, subject_id, content, is_system=False)
    enforce(Entity.MESSAGE, Operation.INSERT, subject_id, role, message, order=order)
    db.add(message)
    db.flush()
    return message


def post_system_message(
    db: Session,
    subject_id: UUID,
    role: Role | str | None,
    order: Order,
    content: str,
) -> Message:
    """System notice on an order (status changes), sent on behalf of the actor."""
    message = _build_message(order, subject_id, content, is_system=True)
    enforce(Entity.MESSAGE, Operation.INSERT, subject_id, role, message, order=order)
    db.add(message)
    db.flush()
    logger.info("System message posted on order %s", order.id)
    return message
