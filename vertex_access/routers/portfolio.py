"""Portfolio endpoints (public read, staff write)."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from vertex_access.core.deps import get_current_principal, get_db, get_optional_principal
from vertex_access.db.enums import PortfolioCategory
from vertex_access.schemas.auth import Principal
from vertex_access.schemas.portfolio import (
    PortfolioItemCreate,
    PortfolioItemRead,
    PortfolioItemUpdate,
)
from vertex_access.services import portfolio_service
from vertex_access.services.portfolio_service import PortfolioItemNotFoundError

router = APIRouter()


@router.get("", response_model=list[PortfolioItemRead])
def list_items(
    category: PortfolioCategory | None = None,
    principal: Principal | None = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    subject_id = principal.subject_id if principal else None
    role = principal.role if principal else None
    return portfolio_service.list_items(db, subject_id, role, category=category)


@router.get("/{item_id}", response_model=PortfolioItemRead)
def get_item(item_id: UUID, db: Session = Depends(get_db)):
    item = portfolio_service.get_item(db, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Portfolio item not found")
    return item


@router.post("", response_model=PortfolioItemRead, status_code=201)
def create_item(
    data: PortfolioItemCreate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    item = portfolio_service.create_item(
        db,
        principal.subject_id,
        principal.role,
        title=data.title,
        category=data.category,
        description=data.description,
        images=data.images,
        live_url=data.live_url,
    )
    db.commit()
    return item


@router.patch("/{item_id}", response_model=PortfolioItemRead)
def update_item(
    item_id: UUID,
    data: PortfolioItemUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        item = portfolio_service.update_item(
            db, principal.subject_id, principal.role, item_id, data.model_dump(exclude_unset=True)
        )
    except PortfolioItemNotFoundError:
        raise HTTPException(status_code=404, detail="Portfolio item not found")
    db.commit()
    return item


@router.delete("/{item_id}", status_code=204)
def delete_item(
    item_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    try:
        portfolio_service.delete_item(db, principal.subject_id, principal.role, item_id)
    except PortfolioItemNotFoundError:
        raise HTTPException(status_code=404, detail="Portfolio item not found")
    db.commit()
    return Response(status_code=204)
