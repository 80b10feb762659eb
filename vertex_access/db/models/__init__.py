"""SQLAlchemy ORM models."""

from vertex_access.db.models.auth import Profile
from vertex_access.db.models.orders import Message, Order
from vertex_access.db.models.portfolio import PortfolioItem

__all__ = ["Message", "Order", "PortfolioItem", "Profile"]
