"""Structured logging helpers (PII-safe).

Access-control log lines carry ids, roles and zones only. Emails and names
never go into `extra`.
"""

from enum import Enum
from typing import Any
from uuid import UUID

LOG_CONTEXT_FIELDS = ("subject_id", "role", "zone", "entity", "operation", "path", "method")


def _log_value(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def build_log_context(
    *,
    subject_id: UUID | str | None = None,
    role: Enum | str | None = None,
    zone: Enum | str | None = None,
    entity: Enum | str | None = None,
    operation: Enum | str | None = None,
    path: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a log `extra` dict, skipping empty fields and flattening enums/UUIDs."""
    values = {
        "subject_id": subject_id,
        "role": role,
        "zone": zone,
        "entity": entity,
        "operation": operation,
        "path": path,
        "method": method,
    }
    context: dict[str, Any] = {}
    for field in LOG_CONTEXT_FIELDS:
        text = _log_value(values[field])
        if text is not None:
            context[field] = text
    return context
