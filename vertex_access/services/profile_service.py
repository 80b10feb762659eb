"""Profile service - profile creation, self-service updates, role promotion.

Role changes go through `update_profile_role` only, which invalidates the
role cache before returning (invalidate-then-acknowledge).
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from vertex_access.core.policies import Entity, Operation, enforce, filter_visible
from vertex_access.core.role_cache import RoleCache
from vertex_access.core.roles import coerce_role, is_super_admin
from vertex_access.db.enums import Role
from vertex_access.db.models import Profile

logger = logging.getLogger(__name__)

# Columns a profile owner may edit through update_profile
EDITABLE_PROFILE_FIELDS = frozenset({"full_name", "avatar_url", "role"})


@dataclass(frozen=True)
class Ok:
    profile: Profile


@dataclass(frozen=True)
class Denied:
    reason: str


RoleUpdateResult = Ok | Denied


class ProfileNotFoundError(Exception):
    """Profile not found."""

    pass


def _generate_referral_code() -> str:
    return secrets.token_hex(4).upper()


# =============================================================================
# Reads
# =============================================================================

def get_profile(db: Session, subject_id: UUID) -> Profile | None:
    """Profiles are publicly readable; no subject needed."""
    return db.get(Profile, subject_id)


def list_profiles(
    db: Session,
    subject_id: UUID | None,
    role: Role | str | None,
    role_filter: Role | None = None,
) -> list[Profile]:
    stmt = select(Profile).order_by(Profile.created_at, Profile.email)
    if role_filter is not None:
        stmt = stmt.where(Profile.role == role_filter.value)
    rows = db.scalars(stmt).all()
    return filter_visible(Entity.PROFILE, subject_id, role, rows)


# =============================================================================
# Writes
# =============================================================================

def create_profile_for_identity(
    db: Session,
    subject_id: UUID,
    email: str,
    full_name: str | None = None,
) -> Profile:
    """
    Create the profile for a newly created identity.

    Runs with system privileges on behalf of the identity provider hook, so
    it does not go through the insert policy. New identities always start as
    CLIENT; the role argument is intentionally absent.
    """
    profile = Profile(
        id=subject_id,
        email=email.lower(),
        full_name=full_name,
        role=Role.CLIENT.value,
        xp_points=0,
        referral_code=_generate_referral_code(),
    )
    db.add(profile)
    db.flush()
    logger.info("Created client profile for subject %s", subject_id)
    return profile


def insert_own_profile(
    db: Session,
    subject_id: UUID,
    role: Role | str | None,
    email: str,
    full_name: str | None = None,
) -> Profile:
    """Self-service insert (normally the creation hook does this)."""
    profile = Profile(
        id=subject_id,
        email=email.lower(),
        full_name=full_name,
        role=Role.CLIENT.value,
        xp_points=0,
        referral_code=_generate_referral_code(),
    )
    enforce(Entity.PROFILE, Operation.INSERT, subject_id, role, profile)
    db.add(profile)
    db.flush()
    return profile


def update_profile(
    db: Session,
    subject_id: UUID,
    role: Role | str | None,
    profile_id: UUID,
    changes: dict[str, Any],
    cache: RoleCache | None = None,
) -> Profile:
    """
    Apply changes to a profile after the update policy approves them.

    A role change coming through here is subject to the same rules as any
    other column: only super_admin may write it, and it is committed
    immediately. Unknown fields raise ValueError.

    Raises:
        ProfileNotFoundError: no such profile
        PolicyDenied: update not allowed for this subject
    """
    unknown = set(changes) - EDITABLE_PROFILE_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {sorted(unknown)}")

    profile = db.get(Profile, profile_id)
    if profile is None:
        raise ProfileNotFoundError(str(profile_id))

    normalized = dict(changes)
    if "role" in normalized:
        new_role = coerce_role(normalized["role"])
        if new_role is None:
            raise ValueError(f"Unknown role: {normalized['role']!r}")
        normalized["role"] = new_role.value

    enforce(Entity.PROFILE, Operation.UPDATE, subject_id, role, profile, changes=normalized)

    role_changed = "role" in normalized and normalized["role"] != profile.role
    for field, value in normalized.items():
        setattr(profile, field, value)

    if role_changed:
        # Commit before invalidating so no reader can re-cache the old role.
        db.commit()
        if cache is not None:
            cache.invalidate(profile.id)
    else:
        db.flush()
    return profile


def update_profile_role(
    db: Session,
    subject_id: UUID,
    new_role: Role | str,
    by_whom: UUID,
    cache: RoleCache | None = None,
) -> RoleUpdateResult:
    """
    Promote/demote a subject. Only a super_admin actor may do this.

    The acting subject's role is read from the store, not from the caller,
    so a stale cached role cannot authorize a promotion. The change is
    committed and the cache entry dropped before Ok is returned.
    """
    target_role = coerce_role(new_role)
    if target_role is None:
        return Denied(f"Unknown role: {new_role!r}")

    actor = db.get(Profile, by_whom)
    if actor is None or not is_super_admin(actor.role):
        logger.warning("Role change for %s rejected: actor %s is not super_admin", subject_id, by_whom)
        return Denied("Only super_admin may change roles")

    profile = db.get(Profile, subject_id)
    if profile is None:
        return Denied("Profile not found")

    previous = profile.role
    profile.role = target_role.value
    db.commit()

    if cache is not None:
        cache.invalidate(subject_id)

    logger.info(
        "Role for %s changed from %s to %s by %s", subject_id, previous, target_role.value, by_whom
    )
    return Ok(profile)
