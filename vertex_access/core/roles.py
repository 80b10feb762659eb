"""Role model - capability predicates and the zone membership table.

Both enforcement points import from here: the route guard (via
core.decisions) and the row policies (core.policies). Keep zone rules and
row rules derived from the same capability sets.

Zone checks treat an unknown/None role as CLIENT (least privileged
authenticated role). Row checks must NOT do this; see core.policies.
"""

from vertex_access.core.zones import Zone
from vertex_access.db.enums import (
    ROLES_CLIENT_PORTAL,
    ROLES_STAFF,
    ROLES_SUPER_ADMIN,
    Role,
)


# =============================================================================
# Role normalization
# =============================================================================

def coerce_role(value: Role | str | None) -> Role | None:
    """Return the Role for a value, or None if it is missing/unknown."""
    if isinstance(value, Role):
        return value
    if isinstance(value, str) and Role.has_value(value):
        return Role(value)
    return None


def role_for_zone_check(value: Role | str | None) -> Role:
    """Zone checks fall back to CLIENT for unknown roles."""
    return coerce_role(value) or Role.CLIENT


# =============================================================================
# Capability predicates
# =============================================================================

def is_super_admin(role: Role | str | None) -> bool:
    return coerce_role(role) in ROLES_SUPER_ADMIN


def is_staff(role: Role | str | None) -> bool:
    return coerce_role(role) in ROLES_STAFF


def is_client(role: Role | str | None) -> bool:
    return coerce_role(role) == Role.CLIENT


# =============================================================================
# Zone membership
# =============================================================================

# Staff are not admitted to the client portal; they are redirected to their
# own home zone instead.
ZONE_ROLES: dict[Zone, frozenset[Role]] = {
    Zone.ADMIN: ROLES_SUPER_ADMIN,
    Zone.STAFF: ROLES_STAFF,
    Zone.CLIENT_PORTAL: ROLES_CLIENT_PORTAL,
    Zone.PUBLIC: frozenset(Role),
}


def has_access(role: Role | str | None, zone: Zone) -> bool:
    """Check if a role may enter a zone. Pure and total."""
    if zone == Zone.PUBLIC:
        return True
    return role_for_zone_check(role) in ZONE_ROLES[zone]


def home_zone(role: Role | str | None) -> Zone:
    """The zone a subject lands in: admin, else staff, else client portal."""
    if is_super_admin(role):
        return Zone.ADMIN
    if is_staff(role):
        return Zone.STAFF
    return Zone.CLIENT_PORTAL


def get_allowed_zones(role: Role | str | None) -> list[Zone]:
    """All zones a role may enter, for UI navigation."""
    return [zone for zone in Zone if has_access(role, zone)]
