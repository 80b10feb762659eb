"""Order and order-chat service tests (policy enforcement at the storage boundary)."""

import uuid
from decimal import Decimal

import pytest

from vertex_access.core.policies import PolicyDenied
from vertex_access.db.enums import OrderStatus, Role
from vertex_access.db.models import Message
from vertex_access.services import message_service, order_service
from vertex_access.services.order_service import (
    InvalidStatusTransitionError,
    OrderAlreadyClaimedError,
    OrderNotFoundError,
    can_transition,
)


# =============================================================================
# Status machine
# =============================================================================

@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        ("pending", "claimed", True),
        ("pending", "cancelled", True),
        ("pending", "in_progress", False),
        ("claimed", "in_progress", True),
        ("in_progress", "review", True),
        ("review", "in_progress", True),
        ("review", "completed", True),
        ("in_progress", "completed", False),
        ("completed", "in_progress", False),
        ("cancelled", "pending", False),
        ("pending", "archived", False),
        ("archived", "pending", False),
    ],
)
def test_can_transition(current, target, allowed):
    assert can_transition(current, target) is allowed


# =============================================================================
# Create / read
# =============================================================================

def test_client_creates_order_for_self(db, client_user):
    order = order_service.create_order(
        db,
        client_user.id,
        Role.CLIENT,
        service_type="Branding",
        price=Decimal("1500.00"),
        milestones=[{"title": "Logo", "done": False}],
    )
    db.commit()

    assert order.client_id == client_user.id
    assert order.status == OrderStatus.PENDING.value
    assert order.currency == "EGP"
    assert order.claimed_by is None
    assert order.milestones == [{"title": "Logo", "done": False}]


@pytest.mark.parametrize("role", [Role.SUPER_ADMIN, Role.SALES, Role.TEAM])
def test_staff_cannot_create_orders(db, make_profile, role):
    staff = make_profile(role)
    with pytest.raises(PolicyDenied):
        order_service.create_order(db, staff.id, role, service_type="Web")


def test_unresolved_role_cannot_create_orders(db, client_user):
    with pytest.raises(PolicyDenied):
        order_service.create_order(db, client_user.id, None, service_type="Web")


def test_clients_list_only_their_orders(db, client_user, other_client, client_order):
    theirs = order_service.create_order(db, other_client.id, Role.CLIENT, service_type="SEO")
    db.commit()

    mine = order_service.list_orders(db, client_user.id, Role.CLIENT)
    assert [o.id for o in mine] == [client_order.id]

    assert order_service.get_order(db, client_user.id, Role.CLIENT, theirs.id) is None
    assert order_service.get_order(db, client_user.id, Role.CLIENT, client_order.id) is not None


@pytest.mark.parametrize("role", [Role.SUPER_ADMIN, Role.SALES, Role.TEAM])
def test_staff_list_all_orders(db, make_profile, client_user, other_client, client_order, role):
    order_service.create_order(db, other_client.id, Role.CLIENT, service_type="SEO")
    db.commit()
    staff = make_profile(role)

    orders = order_service.list_orders(db, staff.id, role)

    assert len(orders) == 2


def test_list_orders_with_unresolved_role_is_empty(db, client_user, client_order):
    assert order_service.list_orders(db, client_user.id, None) == []


def test_list_orders_filters_by_status(db, team_user, client_order):
    assert order_service.list_orders(db, team_user.id, Role.TEAM, status=OrderStatus.CLAIMED) == []
    assert len(order_service.list_orders(db, team_user.id, Role.TEAM, status=OrderStatus.PENDING)) == 1


def test_missing_order_is_none(db, team_user):
    assert order_service.get_order(db, team_user.id, Role.TEAM, uuid.uuid4()) is None


# =============================================================================
# Claim / update
# =============================================================================

def test_staff_claims_pending_order(db, team_user, client_order):
    order = order_service.claim_order(db, team_user.id, Role.TEAM, client_order.id)
    db.commit()

    assert order.claimed_by == team_user.id
    assert order.status == OrderStatus.CLAIMED.value


def test_second_claim_is_rejected(db, team_user, sales_user, client_order):
    order_service.claim_order(db, team_user.id, Role.TEAM, client_order.id)
    db.commit()

    with pytest.raises(OrderAlreadyClaimedError):
        order_service.claim_order(db, sales_user.id, Role.SALES, client_order.id)


def test_concurrent_claims_keep_the_first_claimer(session_factory, team_user, sales_user, client_order):
    first = session_factory()
    second = session_factory()
    try:
        # Both staff members have the pending order loaded.
        assert order_service.get_order(first, team_user.id, Role.TEAM, client_order.id).claimed_by is None
        assert order_service.get_order(second, sales_user.id, Role.SALES, client_order.id).claimed_by is None

        order_service.claim_order(first, team_user.id, Role.TEAM, client_order.id)
        first.commit()

        with pytest.raises(OrderAlreadyClaimedError):
            order_service.claim_order(second, sales_user.id, Role.SALES, client_order.id)
        second.rollback()
    finally:
        first.close()
        second.close()

    check = session_factory()
    try:
        order = order_service.get_order(check, team_user.id, Role.TEAM, client_order.id)
        assert order.claimed_by == team_user.id
        assert order.status == OrderStatus.CLAIMED.value
    finally:
        check.close()


def test_client_cannot_claim(db, client_user, client_order):
    with pytest.raises(PolicyDenied):
        order_service.claim_order(db, client_user.id, Role.CLIENT, client_order.id)


def test_client_cannot_see_foreign_order_to_claim(db, other_client, client_order):
    with pytest.raises(OrderNotFoundError):
        order_service.claim_order(db, other_client.id, Role.CLIENT, client_order.id)


def test_client_cannot_update_own_order(db, client_user, client_order):
    with pytest.raises(PolicyDenied):
        order_service.update_order(
            db, client_user.id, Role.CLIENT, client_order.id, {"price": Decimal("1")}
        )


def test_any_staff_member_may_update_open_order(db, team_user, sales_user, client_order):
    order_service.claim_order(db, team_user.id, Role.TEAM, client_order.id)
    db.commit()

    # Not the claimer, still allowed
    order = order_service.update_order(
        db, sales_user.id, Role.SALES, client_order.id, {"price": Decimal("900.00")}
    )
    db.commit()
    assert order.price == Decimal("900.00")


def test_update_rejects_unknown_fields(db, team_user, client_order):
    with pytest.raises(ValueError):
        order_service.update_order(db, team_user.id, Role.TEAM, client_order.id, {"client_id": uuid.uuid4()})


def test_update_rejects_invalid_status_jump(db, team_user, client_order):
    with pytest.raises(InvalidStatusTransitionError):
        order_service.update_order(
            db, team_user.id, Role.TEAM, client_order.id, {"status": "completed"}
        )


def test_full_lifecycle_and_terminal_lock(db, team_user, super_admin, client_order):
    order_service.claim_order(db, team_user.id, Role.TEAM, client_order.id)
    for status in (OrderStatus.IN_PROGRESS, OrderStatus.REVIEW, OrderStatus.COMPLETED):
        order_service.transition_order(db, team_user.id, Role.TEAM, client_order.id, status)
    db.commit()

    assert client_order.status == OrderStatus.COMPLETED.value

    # Completed orders are read-only even for super_admin
    with pytest.raises(PolicyDenied):
        order_service.update_order(
            db, super_admin.id, Role.SUPER_ADMIN, client_order.id, {"description": "late edit"}
        )


def test_cancelled_order_cannot_be_claimed(db, team_user, client_order):
    order_service.transition_order(db, team_user.id, Role.TEAM, client_order.id, OrderStatus.CANCELLED)
    db.commit()

    with pytest.raises(PolicyDenied):
        order_service.claim_order(db, team_user.id, Role.TEAM, client_order.id)


def test_transition_posts_system_message(db, team_user, client_user, client_order):
    order_service.claim_order(db, team_user.id, Role.TEAM, client_order.id)
    order_service.transition_order(db, team_user.id, Role.TEAM, client_order.id, "in_progress")
    db.commit()

    messages = message_service.list_messages(db, client_user.id, Role.CLIENT, client_order.id)
    assert len(messages) == 1
    assert messages[0].is_system_message is True
    assert messages[0].content == "Order status changed to in progress"


def test_transition_without_notification(db, team_user, client_order):
    order_service.transition_order(
        db, team_user.id, Role.TEAM, client_order.id, "cancelled", notify=False
    )
    db.commit()
    assert db.query(Message).count() == 0


def test_transition_to_current_status_is_rejected_without_message(db, team_user, client_order):
    order_service.claim_order(db, team_user.id, Role.TEAM, client_order.id)
    db.commit()

    with pytest.raises(InvalidStatusTransitionError):
        order_service.transition_order(db, team_user.id, Role.TEAM, client_order.id, "claimed")
    db.rollback()

    assert db.query(Message).count() == 0
    db.refresh(client_order)
    assert client_order.status == OrderStatus.CLAIMED.value


def test_client_same_status_transition_is_still_a_policy_denial(db, client_user, client_order):
    with pytest.raises(PolicyDenied):
        order_service.transition_order(db, client_user.id, Role.CLIENT, client_order.id, "pending")


# =============================================================================
# Messages
# =============================================================================

def test_order_client_and_staff_can_chat(db, client_user, team_user, client_order):
    message_service.send_message(db, client_user.id, Role.CLIENT, client_order.id, "Hi there")
    message_service.send_message(db, team_user.id, Role.TEAM, client_order.id, "Hello!")
    db.commit()

    for subject, role in ((client_user, Role.CLIENT), (team_user, Role.TEAM)):
        contents = [
            m.content
            for m in message_service.list_messages(db, subject.id, role, client_order.id)
        ]
        assert sorted(contents) == ["Hello!", "Hi there"]


def test_other_client_cannot_read_or_post(db, client_user, other_client, client_order):
    message_service.send_message(db, client_user.id, Role.CLIENT, client_order.id, "private")
    db.commit()

    assert message_service.list_messages(db, other_client.id, Role.CLIENT, client_order.id) == []
    with pytest.raises(PolicyDenied):
        message_service.send_message(db, other_client.id, Role.CLIENT, client_order.id, "let me in")


def test_posting_to_missing_order_looks_like_a_denial(db, client_user):
    with pytest.raises(PolicyDenied):
        message_service.send_message(db, client_user.id, Role.CLIENT, uuid.uuid4(), "hello?")


def test_list_messages_for_missing_order_is_empty(db, team_user):
    assert message_service.list_messages(db, team_user.id, Role.TEAM, uuid.uuid4()) == []


@pytest.mark.parametrize("content", ["", "   ", "x" * (message_service.MAX_MESSAGE_LENGTH + 1)])
def test_message_content_is_validated(db, client_user, client_order, content):
    with pytest.raises(ValueError):
        message_service.send_message(db, client_user.id, Role.CLIENT, client_order.id, content)
