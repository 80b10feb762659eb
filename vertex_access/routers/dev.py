"""Development-only endpoints for local sign-in without the identity provider."""

import uuid

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from vertex_access.core.config import settings
from vertex_access.core.deps import get_db
from vertex_access.core.security import COOKIE_NAME, create_session_token
from vertex_access.schemas.auth import DevLoginRequest
from vertex_access.services import profile_service

router = APIRouter()


class DevIdentityRequest(BaseModel):
    email: str
    full_name: str | None = None


def _verify_dev_secret(x_dev_secret: str = Header(...)):
    """
    Verify dev secret header.

    Provides an extra layer of protection for dev endpoints
    beyond just the ENV check.
    """
    if x_dev_secret != settings.DEV_SECRET:
        raise HTTPException(status_code=403, detail="Invalid dev secret")


@router.post("/identities", dependencies=[Depends(_verify_dev_secret)])
def create_identity(data: DevIdentityRequest, db: Session = Depends(get_db)):
    """Simulate the identity provider creating a user (profile starts as client)."""
    profile = profile_service.create_profile_for_identity(
        db, uuid.uuid4(), data.email, data.full_name
    )
    db.commit()
    return {"subject_id": str(profile.id), "role": profile.role}


@router.post("/login", dependencies=[Depends(_verify_dev_secret)])
def dev_login(data: DevLoginRequest, response: Response, db: Session = Depends(get_db)):
    """Mint a session cookie for an existing profile."""
    if profile_service.get_profile(db, data.subject_id) is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    token = create_session_token(data.subject_id)
    response.set_cookie(
        COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
    )
    return {"status": "ok", "subject_id": str(data.subject_id)}
