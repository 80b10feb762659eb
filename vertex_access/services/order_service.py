"""Order service - create, claim and progress orders under row policies.

Every read goes through the select policy (invisible orders behave exactly
like missing ones) and every write through enforce(), which raises
PolicyDenied before anything is written.

Status changes follow ORDER_STATUS_TRANSITIONS. This is a workflow rule on top
of the coarse policy: any staff member may update an open order, the state
machine only decides which target statuses make sense.
"""

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from vertex_access.core.policies import Entity, Operation, enforce, filter_visible
from vertex_access.core.roles import is_staff
from vertex_access.db.enums import (
    DEFAULT_ORDER_CURRENCY,
    ORDER_STATUS_TRANSITIONS,
    OrderStatus,
    Role,
)
from vertex_access.db.models import Order

logger = logging.getLogger(__name__)

EDITABLE_ORDER_FIELDS = frozenset(
    {"description", "price", "currency", "milestones", "status", "claimed_by"}
)


class OrderServiceError(Exception):
    """Base exception for order service errors."""

    pass


class OrderNotFoundError(OrderServiceError):
    """Order not found (or not visible to the caller)."""

    pass


class OrderAlreadyClaimedError(OrderServiceError):
    """Order is already claimed by a staff member."""

    pass


class InvalidStatusTransitionError(OrderServiceError):
    """Requested status is not reachable from the current one."""

    pass


# =============================================================================
# Status machine
# =============================================================================

def can_transition(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    try:
        current_status = OrderStatus(current)
        target_status = OrderStatus(target)
    except ValueError:
        return False
    return target_status in ORDER_STATUS_TRANSITIONS[current_status]


def validate_transition(current: OrderStatus | str, target: OrderStatus | str) -> OrderStatus:
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(
            f"Cannot move order from '{getattr(current, 'value', current)}' "
            f"to '{getattr(target, 'value', target)}'"
        )
    return OrderStatus(target)


# =============================================================================
# Reads
# =============================================================================

def list_orders(
    db: Session,
    subject_id: UUID | None,
    role: Role | str | None,
    status: OrderStatus | None = None,
) -> list[Order]:
    """Orders visible to the subject, newest first."""
    stmt = select(Order).order_by(Order.created_at.desc(), Order.id)
    if status is not None:
        stmt = stmt.where(Order.status == status.value)
    if not is_staff(role) and subject_id is not None:
        # Narrow the scan for clients; filter_visible stays authoritative.
        stmt = stmt.where(Order.client_id == subject_id)
    rows = db.scalars(stmt).all()
    return filter_visible(Entity.ORDER, subject_id, role, rows)


def get_order(
    db: Session,
    subject_id: UUID | None,
    role: Role | str | None,
    order_id: UUID,
) -> Order | None:
    """Return the order if it exists and is visible, else None."""
    order = db.get(Order, order_id)
    if order is None:
        return None
    visible = filter_visible(Entity.ORDER, subject_id, role, [order])
    return visible[0] if visible else None


def _get_visible_or_raise(db: Session, subject_id, role, order_id: UUID) -> Order:
    order = get_order(db, subject_id, role, order_id)
    if order is None:
        raise OrderNotFoundError(str(order_id))
    return order


# =============================================================================
# Writes
# =============================================================================

def create_order(
    db: Session,
    subject_id: UUID,
    role: Role | str | None,
    service_type: str,
    description: str | None = None,
    price: Decimal | None = None,
    currency: str = DEFAULT_ORDER_CURRENCY,
    milestones: list[dict] | None = None,
) -> Order:
    """
    Place a new order for the calling client.

    Raises:
        PolicyDenied: caller is not a client
    """
    order = Order(
        client_id=subject_id,
        service_type=service_type,
        description=description,
        status=OrderStatus.PENDING.value,
        price=price,
        currency=currency,
        milestones=list(milestones or []),
    )
    enforce(Entity.ORDER, Operation.INSERT, subject_id, role, order)
    db.add(order)
    db.flush()
    logger.info("Order %s created by client %s", order.id, subject_id)
    return order


def update_order(
    db: Session,
    subject_id: UUID,
    role: Role | str | None,
    order_id: UUID,
    changes: dict[str, Any],
) -> Order:
    """
    Apply staff changes to an order.

    Raises:
        OrderNotFoundError: missing or invisible
        PolicyDenied: caller is not staff, or the order is completed/cancelled
        InvalidStatusTransitionError: status change not allowed from current status
    """
    unknown = set(changes) - EDITABLE_ORDER_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {sorted(unknown)}")

    order = _get_visible_or_raise(db, subject_id, role, order_id)
    enforce(Entity.ORDER, Operation.UPDATE, subject_id, role, order, changes=changes)

    normalized = dict(changes)
    if "status" in normalized:
        target = OrderStatus(normalized["status"])
        if target.value != order.status:
            validate_transition(order.status, target)
        normalized["status"] = target.value

    for field, value in normalized.items():
        setattr(order, field, value)
    db.flush()
    return order


def claim_order(
    db: Session,
    subject_id: UUID,
    role: Role | str | None,
    order_id: UUID,
) -> Order:
    """
    Claim a pending order for the calling staff member. Atomic operation.

    Raises:
        OrderNotFoundError: missing or invisible
        PolicyDenied: caller is not staff
        OrderAlreadyClaimedError: someone already claimed it
        InvalidStatusTransitionError: order is not pending
    """
    # Lock row for update (atomic claim)
    order = db.execute(
        select(Order)
        .where(Order.id == order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if order is None or not filter_visible(Entity.ORDER, subject_id, role, [order]):
        raise OrderNotFoundError(str(order_id))

    changes = {"claimed_by": subject_id, "status": OrderStatus.CLAIMED.value}
    enforce(Entity.ORDER, Operation.UPDATE, subject_id, role, order, changes=changes)

    if order.claimed_by is not None:
        raise OrderAlreadyClaimedError(f"Order {order_id} is already claimed")
    validate_transition(order.status, OrderStatus.CLAIMED)

    # Backends without row locks (SQLite) rely on the guarded UPDATE instead.
    result = db.execute(
        update(Order)
        .where(
            Order.id == order_id,
            Order.claimed_by.is_(None),
            Order.status == OrderStatus.PENDING.value,
        )
        .values(claimed_by=subject_id, status=OrderStatus.CLAIMED.value)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise OrderAlreadyClaimedError(f"Order {order_id} is already claimed")

    db.refresh(order)
    logger.info("Order %s claimed by %s", order.id, subject_id)
    return order


def transition_order(
    db: Session,
    subject_id: UUID,
    role: Role | str | None,
    order_id: UUID,
    new_status: OrderStatus | str,
    notify: bool = True,
) -> Order:
    """
    Move an order along the status machine, optionally posting a system
    message on the order's chat.

    Raises:
        InvalidStatusTransitionError: target is the current status or not reachable
    """
    target = OrderStatus(new_status)
    current = _get_visible_or_raise(db, subject_id, role, order_id)
    enforce(Entity.ORDER, Operation.UPDATE, subject_id, role, current, changes={"status": target.value})
    if target.value == current.status:
        raise InvalidStatusTransitionError(f"Order is already '{target.value}'")
    order = update_order(db, subject_id, role, order_id, {"status": target.value})

    if notify:
        from vertex_access.services import message_service

        message_service.post_system_message(
            db,
            subject_id,
            role,
            order,
            f"Order status changed to {target.value.replace('_', ' ')}",
        )
    return order
