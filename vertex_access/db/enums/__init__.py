"""Enum definitions for application constants."""

from vertex_access.db.enums.auth import AuthStatus, Role
from vertex_access.db.enums.orders import (
    DEFAULT_ORDER_CURRENCY,
    DEFAULT_ORDER_STATUS,
    ORDER_STATUS_TRANSITIONS,
    TERMINAL_ORDER_STATUSES,
    OrderStatus,
)
from vertex_access.db.enums.permissions import (
    ROLES_CAN_CREATE_ORDERS,
    ROLES_CLIENT_PORTAL,
    ROLES_STAFF,
    ROLES_SUPER_ADMIN,
)
from vertex_access.db.enums.portfolio import PortfolioCategory

__all__ = [
    "AuthStatus",
    "DEFAULT_ORDER_CURRENCY",
    "DEFAULT_ORDER_STATUS",
    "ORDER_STATUS_TRANSITIONS",
    "OrderStatus",
    "PortfolioCategory",
    "ROLES_CAN_CREATE_ORDERS",
    "ROLES_CLIENT_PORTAL",
    "ROLES_STAFF",
    "ROLES_SUPER_ADMIN",
    "Role",
    "TERMINAL_ORDER_STATUSES",
]
