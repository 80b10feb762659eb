"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from vertex_access.core.role_cache import RoleCache
from vertex_access.db.enums import AuthStatus
from vertex_access.db.session import SessionLocal
from vertex_access.schemas.auth import Principal
from vertex_access.services.identity_service import CookieSessionProvider, RoleResolver


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_role_resolver(request: Request) -> RoleResolver:
    return request.app.state.role_resolver


def get_role_cache(request: Request) -> RoleCache | None:
    return request.app.state.role_resolver.cache


async def get_optional_principal(
    request: Request,
    resolver: RoleResolver = Depends(get_role_resolver),
) -> Principal | None:
    """
    Principal for endpoints that also serve anonymous callers (public reads).

    Resolution errors are treated like no session: the caller only gets what
    anonymous callers get.
    """
    session = CookieSessionProvider(request.cookies).get_session()
    resolution = await resolver.resolve_async(session)
    if isinstance(resolution, AuthStatus):
        return None
    return Principal(subject_id=session.subject_id, role=resolution)


async def get_current_principal(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    """
    Authenticated principal with a resolved role.

    Unauthenticated and unresolvable sessions get the same 401 so callers
    cannot tell whether a profile exists.

    Raises:
        HTTPException 401: no session, or role could not be resolved
    """
    if principal is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return principal
