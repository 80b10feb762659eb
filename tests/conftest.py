"""
Test configuration and fixtures.

Provides:
- File-backed SQLite database per test (separate connections, like production)
- Profile factory for each role
- Role resolver + cache wired to the test database
- HTTPX AsyncClient factory with the app's DB dependency overridden
"""
import os
import uuid
from collections.abc import Callable, Generator

# Configure before the app imports settings
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "memory://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from vertex_access.core.deps import get_db
from vertex_access.core.role_cache import RoleCache
from vertex_access.core.security import COOKIE_NAME, create_session_token
from vertex_access.db import models  # noqa: F401
from vertex_access.db.base import Base
from vertex_access.db.enums import Role
from vertex_access.db.models import Order, Profile
from vertex_access.main import app
from vertex_access.services import order_service, profile_service
from vertex_access.services.identity_service import DatabaseProfileStore, RoleResolver


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'vertex-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


# =============================================================================
# Profile Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def make_profile(db: Session) -> Callable[..., Profile]:
    """Create and commit a profile with the given role."""

    def _make(role: Role | str | None = Role.CLIENT, email: str | None = None) -> Profile:
        subject_id = uuid.uuid4()
        profile = profile_service.create_profile_for_identity(
            db,
            subject_id,
            email or f"{getattr(role, 'value', role)}-{uuid.uuid4().hex[:8]}@test.com",
            full_name="Test Subject",
        )
        profile.role = role.value if isinstance(role, Role) else role
        db.commit()
        return profile

    return _make


@pytest.fixture
def super_admin(make_profile) -> Profile:
    return make_profile(Role.SUPER_ADMIN)


@pytest.fixture
def sales_user(make_profile) -> Profile:
    return make_profile(Role.SALES)


@pytest.fixture
def team_user(make_profile) -> Profile:
    return make_profile(Role.TEAM)


@pytest.fixture
def client_user(make_profile) -> Profile:
    return make_profile(Role.CLIENT)


@pytest.fixture
def other_client(make_profile) -> Profile:
    return make_profile(Role.CLIENT)


@pytest.fixture
def client_order(db: Session, client_user: Profile) -> Order:
    order = order_service.create_order(
        db, client_user.id, Role.CLIENT, service_type="Web Development", description="Landing page"
    )
    db.commit()
    return order


# =============================================================================
# Resolver Fixtures
# =============================================================================

@pytest.fixture
def role_cache() -> RoleCache:
    return RoleCache(ttl_seconds=30, max_entries=128)


@pytest.fixture
def resolver(session_factory: sessionmaker, role_cache: RoleCache) -> RoleResolver:
    return RoleResolver(DatabaseProfileStore(session_factory), role_cache, timeout_seconds=5)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def make_client(db: Session, resolver: RoleResolver) -> Generator[Callable[..., AsyncClient], None, None]:
    """
    Factory for AsyncClients against the app, optionally signed in.

    Usage:
        async with make_client(team_user) as c:
            await c.get("/dashboard")
    """
    def override_get_db():
        yield db

    original_resolver = app.state.role_resolver
    app.state.role_resolver = resolver
    app.dependency_overrides[get_db] = override_get_db

    def _make(profile_or_id=None) -> AsyncClient:
        cookies = {}
        if profile_or_id is not None:
            subject_id = getattr(profile_or_id, "id", profile_or_id)
            cookies[COOKIE_NAME] = create_session_token(subject_id)
        return AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies=cookies,
        )

    yield _make

    app.dependency_overrides.clear()
    app.state.role_resolver = original_resolver
