"""Order endpoints, including the per-order chat."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from vertex_access.core.deps import get_current_principal, get_db
from vertex_access.db.enums import OrderStatus
from vertex_access.schemas.auth import Principal
from vertex_access.schemas.order import (
    MessageCreate,
    MessageRead,
    OrderCreate,
    OrderRead,
    OrderStatusUpdate,
    OrderUpdate,
)
from vertex_access.services import message_service, order_service
from vertex_access.services.order_service import (
    InvalidStatusTransitionError,
    OrderAlreadyClaimedError,
    OrderNotFoundError,
)

router = APIRouter()


@router.get("", response_model=list[OrderRead])
def list_orders(
    status: OrderStatus | None = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Staff see all orders, clients their own."""
    return order_service.list_orders(db, principal.subject_id, principal.role, status=status)


@router.post("", response_model=OrderRead, status_code=201)
def create_order(
    data: OrderCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    order = order_service.create_order(
        db,
        principal.subject_id,
        principal.role,
        service_type=data.service_type,
        description=data.description,
        price=data.price,
        currency=data.currency,
        milestones=data.milestones,
    )
    db.commit()
    return order


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    order = order_service.get_order(db, principal.subject_id, principal.role, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.patch("/{order_id}", response_model=OrderRead)
def update_order(
    order_id: UUID,
    data: OrderUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        order = order_service.update_order(
            db, principal.subject_id, principal.role, order_id, data.model_dump(exclude_unset=True)
        )
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    db.commit()
    return order


@router.post("/{order_id}/claim", response_model=OrderRead)
def claim_order(
    order_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Claim a pending order.

    - Returns 409 if already claimed or no longer pending
    """
    try:
        order = order_service.claim_order(db, principal.subject_id, principal.role, order_id)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    except (OrderAlreadyClaimedError, InvalidStatusTransitionError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    db.commit()
    return order


@router.post("/{order_id}/status", response_model=OrderRead)
def change_status(
    order_id: UUID,
    data: OrderStatusUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        order = order_service.transition_order(
            db, principal.subject_id, principal.role, order_id, data.status
        )
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    db.commit()
    return order


# =============================================================================
# Messages
# =============================================================================

@router.get("/{order_id}/messages", response_model=list[MessageRead])
def list_messages(
    order_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Empty list when the caller is not a participant."""
    return message_service.list_messages(db, principal.subject_id, principal.role, order_id)


@router.post("/{order_id}/messages", response_model=MessageRead, status_code=201)
def send_message(
    order_id: UUID,
    data: MessageCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        message = message_service.send_message(
            db, principal.subject_id, principal.role, order_id, data.content
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    db.commit()
    return message
