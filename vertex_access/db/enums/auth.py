"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    Portal roles.

    Not a linear order: SALES and TEAM are siblings under SUPER_ADMIN,
    and all three are staff relative to CLIENT.

    - SUPER_ADMIN: Agency owner (admin zone, role promotion)
    - SALES: Staff handling leads and quotes
    - TEAM: Staff delivering orders
    - CLIENT: Customer placing orders (default for new identities)
    """

    SUPER_ADMIN = "super_admin"
    SALES = "sales"
    TEAM = "team"
    CLIENT = "client"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class AuthStatus(str, Enum):
    """Non-role outcomes of role resolution. Both are treated as deny."""

    UNAUTHENTICATED = "unauthenticated"
    RESOLUTION_ERROR = "resolution_error"
