"""Row-level access policies - one predicate per (entity, operation).

These are the authoritative rules. The route guard is a UX layer and may be
skipped or misconfigured; every storage read/write must still pass here.

All predicates share one signature:

    predicate(subject_id, role, row, *, order=None, changes=None) -> bool

- row: the stored row (select/update/delete) or the proposed row (insert).
  Any object with attributes, or a mapping.
- order: parent order for message predicates (the participant join).
- changes: proposed column values for update predicates.

Role handling differs from zone checks on purpose: an unknown/None role is
NOT treated as client here. Every non-public predicate denies it.

Precedence inside a predicate: unresolved role -> deny, then capability,
then ownership.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from vertex_access.core.roles import coerce_role, is_staff, is_super_admin
from vertex_access.core.structured_logging import build_log_context
from vertex_access.db.enums import ROLES_CAN_CREATE_ORDERS, OrderStatus, Role

logger = logging.getLogger(__name__)


class Entity(str, Enum):
    PROFILE = "profiles"
    ORDER = "orders"
    PORTFOLIO = "portfolio"
    MESSAGE = "messages"


class Operation(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


WRITE_OPERATIONS = frozenset({Operation.INSERT, Operation.UPDATE, Operation.DELETE})

# Columns a non-super_admin may never write on their own profile
PROFILE_SELF_PROTECTED_COLUMNS = ("role", "id")


class PolicyDenied(Exception):
    """A write was rejected by a row policy."""

    def __init__(self, entity: Entity, operation: Operation):
        self.entity = entity
        self.operation = operation
        super().__init__(f"{operation.value} on {entity.value} denied by policy")


Predicate = Callable[..., bool]


# =============================================================================
# Helpers
# =============================================================================

def _field(row: Any, name: str) -> Any:
    if row is None:
        return None
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _same_subject(subject_id: UUID | str | None, other: UUID | str | None) -> bool:
    if subject_id is None or other is None:
        return False
    return _as_text(subject_id) == _as_text(other)


def _is_open_order(status: OrderStatus | str | None) -> bool:
    """Unknown statuses are treated as closed."""
    try:
        return not OrderStatus(status).is_terminal
    except ValueError:
        return False


def _is_order_participant(subject_id: UUID | str | None, role: Role, order: Any) -> bool:
    if order is None:
        return False
    return is_staff(role) or _same_subject(subject_id, _field(order, "client_id"))


def _order_matches(row: Any, order: Any) -> bool:
    return order is not None and _same_subject(_field(row, "order_id"), _field(order, "id"))


def _writes_protected_column(row: Any, changes: Mapping[str, Any] | None) -> bool:
    if not changes:
        return False
    for column in PROFILE_SELF_PROTECTED_COLUMNS:
        if column in changes and _as_text(changes[column]) != _as_text(_field(row, column)):
            return True
    return False


def _always(subject_id=None, role=None, row=None, *, order=None, changes=None) -> bool:
    return True


def _never(subject_id=None, role=None, row=None, *, order=None, changes=None) -> bool:
    return False


# =============================================================================
# Profiles
# =============================================================================

profile_can_select = _always
profile_can_delete = _never


def profile_can_insert(subject_id, role, row, *, order=None, changes=None) -> bool:
    """A subject may only insert their own profile, and it starts as client."""
    if coerce_role(role) is None:
        return False
    initial_role = _field(row, "role")
    if initial_role is not None and coerce_role(initial_role) != Role.CLIENT:
        return False
    return _same_subject(subject_id, _field(row, "id"))


def profile_can_update(subject_id, role, row, *, order=None, changes=None) -> bool:
    """
    Own profile, or any profile for super_admin.

    The own-profile path may not touch the role (or id) column; otherwise a
    client could promote themselves.
    """
    resolved = coerce_role(role)
    if resolved is None:
        return False
    if is_super_admin(resolved):
        return True
    if not _same_subject(subject_id, _field(row, "id")):
        return False
    return not _writes_protected_column(row, changes)


# =============================================================================
# Orders
# =============================================================================

order_can_delete = _never


def order_can_select(subject_id, role, row, *, order=None, changes=None) -> bool:
    """Staff see every order; clients see only their own."""
    resolved = coerce_role(role)
    if resolved is None:
        return False
    return is_staff(resolved) or _same_subject(subject_id, _field(row, "client_id"))


def order_can_insert(subject_id, role, row, *, order=None, changes=None) -> bool:
    """Only clients place orders, and only for themselves."""
    if coerce_role(role) not in ROLES_CAN_CREATE_ORDERS:
        return False
    return _same_subject(subject_id, _field(row, "client_id"))


def order_can_update(subject_id, role, row, *, order=None, changes=None) -> bool:
    """Any staff role, as long as the stored order is not completed/cancelled."""
    resolved = coerce_role(role)
    if resolved is None or not is_staff(resolved):
        return False
    return _is_open_order(_field(row, "status"))


# =============================================================================
# Portfolio
# =============================================================================

portfolio_can_select = _always


def portfolio_can_write(subject_id, role, row=None, *, order=None, changes=None) -> bool:
    return is_staff(coerce_role(role))


# =============================================================================
# Messages (joined against the parent order)
# =============================================================================

message_can_update = _never
message_can_delete = _never


def message_can_select(subject_id, role, row, *, order=None, changes=None) -> bool:
    """Visible to the parent order's client and to staff."""
    resolved = coerce_role(role)
    if resolved is None or not _order_matches(row, order):
        return False
    return _is_order_participant(subject_id, resolved, order)


def message_can_insert(subject_id, role, row, *, order=None, changes=None) -> bool:
    """Sender must be the caller, and the caller a participant of the order."""
    resolved = coerce_role(role)
    if resolved is None or not _order_matches(row, order):
        return False
    if not _same_subject(subject_id, _field(row, "sender_id")):
        return False
    return _is_order_participant(subject_id, resolved, order)


# =============================================================================
# Registry
# =============================================================================

@dataclass(frozen=True)
class EntityPolicy:
    """Predicates for each operation on an entity."""

    select: Predicate
    insert: Predicate
    update: Predicate
    delete: Predicate

    def for_operation(self, operation: Operation) -> Predicate:
        return getattr(self, Operation(operation).value)


POLICIES: dict[Entity, EntityPolicy] = {
    Entity.PROFILE: EntityPolicy(
        select=profile_can_select,
        insert=profile_can_insert,
        update=profile_can_update,
        delete=profile_can_delete,
    ),
    Entity.ORDER: EntityPolicy(
        select=order_can_select,
        insert=order_can_insert,
        update=order_can_update,
        delete=order_can_delete,
    ),
    Entity.PORTFOLIO: EntityPolicy(
        select=portfolio_can_select,
        insert=portfolio_can_write,
        update=portfolio_can_write,
        delete=portfolio_can_write,
    ),
    Entity.MESSAGE: EntityPolicy(
        select=message_can_select,
        insert=message_can_insert,
        update=message_can_update,
        delete=message_can_delete,
    ),
}


def get_policy(entity: Entity | str) -> EntityPolicy:
    """Fetch an entity policy or raise KeyError."""
    return POLICIES[Entity(entity)]


# =============================================================================
# Storage boundary
# =============================================================================

def check(
    entity: Entity | str,
    operation: Operation | str,
    subject_id: UUID | str | None,
    role: Role | str | None,
    row: Any = None,
    *,
    order: Any = None,
    changes: Mapping[str, Any] | None = None,
) -> bool:
    """Evaluate the predicate for one row. Never raises for a denial."""
    predicate = get_policy(entity).for_operation(Operation(operation))
    return bool(predicate(subject_id, role, row, order=order, changes=changes))


def enforce(
    entity: Entity | str,
    operation: Operation | str,
    subject_id: UUID | str | None,
    role: Role | str | None,
    row: Any = None,
    *,
    order: Any = None,
    changes: Mapping[str, Any] | None = None,
) -> None:
    """
    Gate a write before it executes.

    Raises:
        PolicyDenied: the predicate returned False
    """
    entity = Entity(entity)
    operation = Operation(operation)
    if check(entity, operation, subject_id, role, row, order=order, changes=changes):
        return
    logger.info(
        "Policy denied %s on %s",
        operation.value,
        entity.value,
        extra=build_log_context(
            subject_id=subject_id,
            role=role,
            entity=entity,
            operation=operation,
        ),
    )
    raise PolicyDenied(entity, operation)


def filter_visible(
    entity: Entity | str,
    subject_id: UUID | str | None,
    role: Role | str | None,
    rows: Iterable[Any],
    *,
    orders: Mapping[Any, Any] | None = None,
) -> list[Any]:
    """
    Apply the select predicate to each row, dropping invisible ones.

    Rejected rows are excluded silently; no error reveals that they exist.
    For messages, `orders` maps order id -> parent order.
    """
    entity = Entity(entity)
    predicate = get_policy(entity).select
    visible = []
    for row in rows:
        order = None
        if orders is not None:
            order = orders.get(_field(row, "order_id"))
        if predicate(subject_id, role, row, order=order):
            visible.append(row)
    return visible
