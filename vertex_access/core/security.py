"""Session token helpers.

The identity provider is external; these helpers only mint (dev/tests) and
verify the signed session cookie it hands out. Token contents are limited to
the subject id: roles are always looked up, never trusted from the token.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from vertex_access.core.config import settings

# Cookie set by the identity provider
COOKIE_NAME = "vertex_session"


def create_session_token(subject_id: UUID, expires_hours: int | None = None) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (JWT_SECRET).
    """
    hours = settings.JWT_EXPIRES_HOURS if expires_hours is None else expires_hours
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(subject_id),
        "iat": now,
        "exp": now + timedelta(hours=hours),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore
