"""Profile endpoints: public directory, self-service edits, role promotion."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from vertex_access.core.deps import (
    get_current_principal,
    get_db,
    get_optional_principal,
    get_role_cache,
)
from vertex_access.core.role_cache import RoleCache
from vertex_access.db.enums import Role
from vertex_access.schemas.auth import Principal
from vertex_access.schemas.profile import ProfileRead, ProfileUpdate, RoleUpdate
from vertex_access.services import profile_service

router = APIRouter()


@router.get("", response_model=list[ProfileRead])
def list_profiles(
    role: Role | None = None,
    principal: Principal | None = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    """Profiles are publicly readable."""
    subject_id = principal.subject_id if principal else None
    subject_role = principal.role if principal else None
    return profile_service.list_profiles(db, subject_id, subject_role, role_filter=role)


@router.get("/{profile_id}", response_model=ProfileRead)
def get_profile(profile_id: UUID, db: Session = Depends(get_db)):
    profile = profile_service.get_profile(db, profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.patch("/{profile_id}", response_model=ProfileRead)
def update_profile(
    profile_id: UUID,
    data: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    cache: RoleCache | None = Depends(get_role_cache),
    db: Session = Depends(get_db),
):
    """
    Update own profile (or any profile as super_admin).

    Sending `role` for your own profile is rejected unless you are super_admin.
    """
    changes = data.model_dump(exclude_unset=True)
    try:
        profile = profile_service.update_profile(
            db, principal.subject_id, principal.role, profile_id, changes, cache=cache
        )
    except profile_service.ProfileNotFoundError:
        raise HTTPException(status_code=404, detail="Profile not found")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    db.commit()
    return profile


@router.put("/{profile_id}/role", response_model=ProfileRead)
def change_role(
    profile_id: UUID,
    data: RoleUpdate,
    principal: Principal = Depends(get_current_principal),
    cache: RoleCache | None = Depends(get_role_cache),
    db: Session = Depends(get_db),
):
    """Promote/demote a subject (super_admin only)."""
    result = profile_service.update_profile_role(
        db, profile_id, data.role, by_whom=principal.subject_id, cache=cache
    )
    if isinstance(result, profile_service.Denied):
        raise HTTPException(status_code=403, detail=result.reason)
    return result.profile
