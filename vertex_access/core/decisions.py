"""Authorization decision engine - zone + role -> Allow | Redirect.

Pure table lookup plus the loop-avoidance rule: a denied subject is sent to
their home zone, which by construction admits them.
"""

from dataclasses import dataclass

from vertex_access.core.config import settings
from vertex_access.core.roles import has_access, home_zone
from vertex_access.core.zones import ZONE_HOME_PATHS, Zone
from vertex_access.db.enums import AuthStatus, Role


@dataclass(frozen=True)
class Allow:
    """Request may proceed."""

    allowed: bool = True


@dataclass(frozen=True)
class Redirect:
    """Request is denied; send the subject to target instead."""

    target: str
    allowed: bool = False


Decision = Allow | Redirect

ALLOW = Allow()


def home_path(role: Role | str | None) -> str:
    """Landing path for a role."""
    return ZONE_HOME_PATHS[home_zone(role)]


def _is_auth_status(value: object) -> bool:
    if isinstance(value, AuthStatus):
        return True
    return isinstance(value, str) and value in AuthStatus._value2member_map_


def decide(zone: Zone, role_or_status: Role | AuthStatus | str | None) -> Decision:
    """
    Decide whether a subject may enter a zone.

    - public zone: always allowed
    - unauthenticated or resolution error: redirect to login (same answer for both)
    - role allowed for zone: allowed
    - otherwise: redirect to the role's home zone
    """
    if zone == Zone.PUBLIC:
        return ALLOW

    if _is_auth_status(role_or_status):
        return Redirect(settings.LOGIN_PATH)

    if has_access(role_or_status, zone):
        return ALLOW

    return Redirect(home_path(role_or_status))


def decision_matrix() -> dict[Zone, dict[str, Decision]]:
    """Full zone x (role | status) decision table, for diagnostics and tests."""
    subjects: list[Role | AuthStatus] = [*Role, *AuthStatus]
    return {
        zone: {subject.value: decide(zone, subject) for subject in subjects}
        for zone in Zone
    }
