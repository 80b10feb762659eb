"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from vertex_access.core.config import settings
from vertex_access.core.guard import RouteGuardMiddleware
from vertex_access.core.policies import PolicyDenied
from vertex_access.core.redis_client import close_redis_client
from vertex_access.core.role_cache import build_role_cache, subscribe_invalidations
from vertex_access.db.session import SessionLocal, engine
from vertex_access.services.identity_service import DatabaseProfileStore, RoleResolver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    worker = subscribe_invalidations(app.state.role_resolver.cache)
    if worker is not None:
        logger.info("Listening for role cache invalidations")
    yield
    if worker is not None:
        worker.stop()
    close_redis_client()


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Vertex Access",
    description="Role-based route guard and row-level access policies",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
    lifespan=lifespan,
)

# One resolver (and role cache) per process, shared by the guard and the API.
app.state.role_resolver = RoleResolver(DatabaseProfileStore(SessionLocal), build_role_cache())

app.add_middleware(RouteGuardMiddleware)


@app.exception_handler(PolicyDenied)
async def policy_denied_handler(request: Request, exc: PolicyDenied):
    """Row policy rejected a write. No details about the row are returned."""
    return JSONResponse(status_code=403, content={"detail": "Not permitted"})


# ============================================================================
# Routers
# ============================================================================

from vertex_access.routers import orders, pages, portfolio, profiles

# Zone pages (/admin, /dashboard, /portal, /login)
app.include_router(pages.router, tags=["pages"])

# JSON API (public zone at the guard; row policies decide)
app.include_router(profiles.router, prefix="/api/profiles", tags=["profiles"])
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
app.include_router(portfolio.router, prefix="/api/portfolio", tags=["portfolio"])

# Dev router (ONLY mounted in dev mode)
if settings.ENV == "dev":
    from vertex_access.routers import dev
    app.include_router(dev.router, prefix="/dev", tags=["dev"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
