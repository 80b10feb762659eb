"""Identity & role resolution.

resolve(session) -> Role | AuthStatus.UNAUTHENTICATED | AuthStatus.RESOLUTION_ERROR

- No live session: UNAUTHENTICATED
- Profile found with a known role: that role
- Profile missing, unknown role, store failure, or timeout: RESOLUTION_ERROR

RESOLUTION_ERROR is never downgraded to CLIENT. "Lookup failed" and "genuinely
a client" are different answers; callers treat the former as deny.
"""

import logging
from collections.abc import Mapping
from typing import Protocol
from uuid import UUID

import anyio
import jwt
from pydantic import ValidationError
from sqlalchemy.orm import Session, sessionmaker

from vertex_access.core.config import settings
from vertex_access.core.role_cache import RoleCache
from vertex_access.core.roles import coerce_role
from vertex_access.core.security import COOKIE_NAME, decode_session_token
from vertex_access.core.structured_logging import build_log_context
from vertex_access.db.enums import AuthStatus, Role
from vertex_access.db.models import Profile
from vertex_access.schemas.auth import SessionHandle, TokenPayload

logger = logging.getLogger(__name__)

RoleResolution = Role | AuthStatus


class ProfileStoreError(Exception):
    """Profile store unreachable or returned an unusable answer."""

    pass


# =============================================================================
# External interfaces
# =============================================================================

class SessionProvider(Protocol):
    def get_session(self) -> SessionHandle | None: ...

    def get_user_id(self, session: SessionHandle) -> UUID: ...


class ProfileStore(Protocol):
    def get_profile(self, subject_id: UUID) -> Profile | None: ...


class CookieSessionProvider:
    """Session provider backed by the signed session cookie."""

    def __init__(self, cookies: Mapping[str, str], cookie_name: str = COOKIE_NAME):
        self._cookies = cookies
        self._cookie_name = cookie_name

    def get_session(self) -> SessionHandle | None:
        token = self._cookies.get(self._cookie_name)
        if not token:
            return None
        try:
            payload = TokenPayload(**decode_session_token(token))
        except (jwt.InvalidTokenError, ValidationError):
            return None
        return SessionHandle(subject_id=payload.sub)

    def get_user_id(self, session: SessionHandle) -> UUID:
        return session.subject_id


class DatabaseProfileStore:
    """Profile lookups through short-lived SQLAlchemy sessions (thread-safe)."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_profile(self, subject_id: UUID) -> Profile | None:
        db: Session = self._session_factory()
        try:
            return db.get(Profile, subject_id)
        except Exception as e:
            raise ProfileStoreError(str(e)) from e
        finally:
            db.close()


# =============================================================================
# Resolver
# =============================================================================

class RoleResolver:
    """Resolves a session to a role, through an explicit role cache."""

    def __init__(
        self,
        store: ProfileStore,
        cache: RoleCache | None = None,
        timeout_seconds: float | None = None,
    ):
        self.store = store
        self.cache = cache
        self.timeout_seconds = (
            settings.ROLE_LOOKUP_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )

    def resolve(self, session: SessionHandle | None) -> RoleResolution:
        if session is None or not session.is_live:
            return AuthStatus.UNAUTHENTICATED
        return self._resolve_subject(session.subject_id)

    async def resolve_async(
        self,
        session: SessionHandle | None,
        timeout_seconds: float | None = None,
    ) -> RoleResolution:
        """
        Same as `resolve`, with the store lookup bounded by a timeout.

        Runs the lookup in a worker thread; on timeout the request is denied
        (RESOLUTION_ERROR) and the worker is abandoned.
        """
        if session is None or not session.is_live:
            return AuthStatus.UNAUTHENTICATED

        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        try:
            with anyio.fail_after(timeout):
                return await anyio.to_thread.run_sync(
                    self._resolve_subject, session.subject_id, abandon_on_cancel=True
                )
        except TimeoutError:
            logger.warning(
                "Role lookup timed out after %.2fs",
                timeout,
                extra=build_log_context(subject_id=session.subject_id),
            )
            return AuthStatus.RESOLUTION_ERROR

    def _resolve_subject(self, subject_id: UUID) -> RoleResolution:
        if self.cache is not None:
            cached = self.cache.get(subject_id)
            if cached is not None:
                return cached
            generation = self.cache.begin_lookup()

        try:
            profile = self.store.get_profile(subject_id)
        except Exception:
            logger.warning(
                "Profile store failure during role resolution",
                exc_info=True,
                extra=build_log_context(subject_id=subject_id),
            )
            return AuthStatus.RESOLUTION_ERROR

        if profile is None:
            # Identity exists but profile row is missing: data-integrity signal.
            logger.warning(
                "No profile for authenticated subject",
                extra=build_log_context(subject_id=subject_id),
            )
            return AuthStatus.RESOLUTION_ERROR

        role = coerce_role(profile.role)
        if role is None:
            logger.warning(
                "Profile has missing or unknown role %r",
                profile.role,
                extra=build_log_context(subject_id=subject_id),
            )
            return AuthStatus.RESOLUTION_ERROR

        if self.cache is not None:
            self.cache.put(subject_id, role, generation)
        return role


def resolve_role(
    session: SessionHandle | None,
    store: ProfileStore,
    cache: RoleCache | None = None,
) -> RoleResolution:
    """One-off resolution without keeping a resolver around."""
    return RoleResolver(store, cache).resolve(session)
