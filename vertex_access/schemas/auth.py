"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel

from vertex_access.db.enums import Role


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: UUID  # subject id


class SessionHandle(BaseModel):
    """
    A session as seen by the access layer.

    Only two facts matter: whose session it is and whether it is still live.
    Signature/expiry checks are done before one of these is built.
    """
    subject_id: UUID
    is_live: bool = True


class Principal(BaseModel):
    """Resolved subject for authorized requests."""
    subject_id: UUID
    role: Role


class DevLoginRequest(BaseModel):
    subject_id: UUID
