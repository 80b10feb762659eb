"""Zone landing endpoints.

RouteGuardMiddleware has already admitted the caller by the time these run;
they only shape the payload for each zone.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vertex_access.core.config import settings
from vertex_access.core.deps import get_current_principal, get_db
from vertex_access.core.roles import get_allowed_zones
from vertex_access.core.zones import Zone
from vertex_access.schemas.auth import Principal
from vertex_access.schemas.order import OrderRead
from vertex_access.schemas.profile import ProfileRead
from vertex_access.services import order_service, profile_service

router = APIRouter()


def _zone_payload(zone: Zone, principal: Principal) -> dict:
    return {
        "zone": zone.value,
        "subject_id": str(principal.subject_id),
        "role": principal.role.value,
        "zones": [z.value for z in get_allowed_zones(principal.role)],
    }


@router.get("/login")
def login_page():
    """Placeholder; sign-in itself is handled by the identity provider."""
    return {"detail": "Sign in with the identity provider", "path": settings.LOGIN_PATH}


@router.get("/admin")
def admin_home(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    payload = _zone_payload(Zone.ADMIN, principal)
    profiles = profile_service.list_profiles(db, principal.subject_id, principal.role)
    payload["profiles"] = [ProfileRead.model_validate(p).model_dump(mode="json") for p in profiles]
    return payload


@router.get("/dashboard")
def dashboard_home(principal: Principal = Depends(get_current_principal)):
    return _zone_payload(Zone.STAFF, principal)


@router.get("/dashboard/orders", response_model=list[OrderRead])
def dashboard_orders(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return order_service.list_orders(db, principal.subject_id, principal.role)


@router.get("/portal")
def portal_home(principal: Principal = Depends(get_current_principal)):
    return _zone_payload(Zone.CLIENT_PORTAL, principal)


@router.get("/portal/orders", response_model=list[OrderRead])
def portal_orders(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return order_service.list_orders(db, principal.subject_id, principal.role)
