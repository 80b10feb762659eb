"""Route classifier - maps a request path to a protection zone.

Prefix matching is segment-aware: "/admin" and "/admin/users" belong to the
admin zone, "/administrator" does not. When zones nest, the longest matching
prefix wins, so adding e.g. "/dashboard/admin" later resolves deterministically.
"""

from enum import Enum


class Zone(str, Enum):
    """Protection zones. Not persisted; derived from the path on every request."""

    PUBLIC = "public"
    ADMIN = "admin"
    STAFF = "staff"  # a.k.a. dashboard
    CLIENT_PORTAL = "client-portal"


ZONE_PREFIXES: dict[str, Zone] = {
    "/admin": Zone.ADMIN,
    "/dashboard": Zone.STAFF,
    "/portal": Zone.CLIENT_PORTAL,
}

# Landing path of each protected zone (redirect target for denied subjects)
ZONE_HOME_PATHS: dict[Zone, str] = {
    Zone.ADMIN: "/admin",
    Zone.STAFF: "/dashboard",
    Zone.CLIENT_PORTAL: "/portal",
}

# Most specific first
_ORDERED_PREFIXES: list[tuple[str, Zone]] = sorted(
    ZONE_PREFIXES.items(), key=lambda item: len(item[0]), reverse=True
)


def normalize_path(path: str) -> str:
    """Strip query/fragment, collapse duplicate and trailing slashes."""
    raw = (path or "/").split("?", 1)[0].split("#", 1)[0]
    segments = [segment for segment in raw.split("/") if segment]
    return "/" + "/".join(segments)


def _matches_prefix(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def classify(path: str) -> Zone:
    """Return the zone for a request path. Anything unmatched is public."""
    normalized = normalize_path(path)
    for prefix, zone in _ORDERED_PREFIXES:
        if _matches_prefix(normalized, prefix):
            return zone
    return Zone.PUBLIC
