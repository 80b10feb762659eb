"""Portfolio service - public showcase, staff-managed."""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from vertex_access.core.policies import Entity, Operation, enforce, filter_visible
from vertex_access.db.enums import PortfolioCategory, Role
from vertex_access.db.models import PortfolioItem

EDITABLE_PORTFOLIO_FIELDS = frozenset({"title", "description", "category", "images", "live_url"})


class PortfolioItemNotFoundError(Exception):
    """Portfolio item not found."""

    pass


def list_items(
    db: Session,
    subject_id: UUID | None = None,
    role: Role | str | None = None,
    category: PortfolioCategory | None = None,
) -> list[PortfolioItem]:
    stmt = select(PortfolioItem).order_by(PortfolioItem.created_at.desc(), PortfolioItem.title)
    if category is not None:
        stmt = stmt.where(PortfolioItem.category == category.value)
    return filter_visible(Entity.PORTFOLIO, subject_id, role, db.scalars(stmt).all())


def get_item(db: Session, item_id: UUID) -> PortfolioItem | None:
    return db.get(PortfolioItem, item_id)


def create_item(
    db: Session,
    subject_id: UUID,
    role: Role | str | None,
    title: str,
    category: PortfolioCategory,
    description: str | None = None,
    images: list[str] | None = None,
    live_url: str | None = None,
) -> PortfolioItem:
    item = PortfolioItem(
        title=title,
        category=PortfolioCategory(category).value,
        description=description,
        images=list(images or []),
        live_url=live_url,
    )
    enforce(Entity.PORTFOLIO, Operation.INSERT, subject_id, role, item)
    db.add(item)
    db.flush()
    return item


def update_item(
    db: Session,
    subject_id: UUID,
    role: Role | str | None,
    item_id: UUID,
    changes: dict[str, Any],
) -> PortfolioItem:
    unknown = set(changes) - EDITABLE_PORTFOLIO_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {sorted(unknown)}")

    item = get_item(db, item_id)
    if item is None:
        raise PortfolioItemNotFoundError(str(item_id))
    enforce(Entity.PORTFOLIO, Operation.UPDATE, subject_id, role, item, changes=changes)

    for field, value in changes.items():
        if field == "category":
            value = PortfolioCategory(value).value
        setattr(item, field, value)
    db.flush()
    return item


def delete_item(
    db: Session,
    subject_id: UUID,
    role: Role | str | None,
    item_id: UUID,
) -> None:
    item = get_item(db, item_id)
    if item is None:
        raise PortfolioItemNotFoundError(str(item_id))
    enforce(Entity.PORTFOLIO, Operation.DELETE, subject_id, role, item)
    db.delete(item)
    db.flush()
