"""Profile and portfolio service tests."""

import uuid

import pytest

from vertex_access.core.policies import PolicyDenied
from vertex_access.core.role_cache import RoleCache
from vertex_access.db.enums import PortfolioCategory, Role
from vertex_access.services import portfolio_service, profile_service
from vertex_access.services.profile_service import Denied, Ok, ProfileNotFoundError


# =============================================================================
# Profiles
# =============================================================================

def test_new_identity_starts_as_client(db):
    profile = profile_service.create_profile_for_identity(db, uuid.uuid4(), "New@Test.com", "New")
    db.commit()

    assert profile.role == Role.CLIENT.value
    assert profile.email == "new@test.com"
    assert profile.xp_points == 0
    assert profile.referral_code


def test_profiles_are_listed_for_anyone(db, client_user, team_user):
    assert len(profile_service.list_profiles(db, None, None)) == 2
    staff = profile_service.list_profiles(db, None, None, role_filter=Role.TEAM)
    assert [p.id for p in staff] == [team_user.id]


def test_insert_own_profile_only(db):
    subject_id = uuid.uuid4()
    profile = profile_service.insert_own_profile(db, subject_id, Role.CLIENT, "me@test.com")
    assert profile.role == Role.CLIENT.value

    with pytest.raises(PolicyDenied):
        profile_service.insert_own_profile(db, subject_id, None, "again@test.com")


def test_owner_updates_own_profile(db, client_user):
    profile = profile_service.update_profile(
        db, client_user.id, Role.CLIENT, client_user.id, {"full_name": "Renamed"}
    )
    assert profile.full_name == "Renamed"


def test_client_cannot_promote_themselves(db, client_user):
    with pytest.raises(PolicyDenied):
        profile_service.update_profile(
            db, client_user.id, Role.CLIENT, client_user.id, {"role": "super_admin"}
        )
    db.rollback()
    db.refresh(client_user)
    assert client_user.role == Role.CLIENT.value


def test_cannot_edit_someone_else(db, client_user, other_client):
    with pytest.raises(PolicyDenied):
        profile_service.update_profile(
            db, client_user.id, Role.CLIENT, other_client.id, {"full_name": "Hacked"}
        )


def test_update_profile_validation(db, client_user, super_admin):
    with pytest.raises(ValueError):
        profile_service.update_profile(
            db, client_user.id, Role.CLIENT, client_user.id, {"email": "x@test.com"}
        )
    with pytest.raises(ValueError):
        profile_service.update_profile(
            db, super_admin.id, Role.SUPER_ADMIN, client_user.id, {"role": "owner"}
        )
    with pytest.raises(ProfileNotFoundError):
        profile_service.update_profile(
            db, super_admin.id, Role.SUPER_ADMIN, uuid.uuid4(), {"full_name": "x"}
        )


def test_super_admin_role_edit_invalidates_cache(db, super_admin, client_user):
    cache = RoleCache(ttl_seconds=30, max_entries=10)
    cache.put(client_user.id, Role.CLIENT)

    profile_service.update_profile(
        db, super_admin.id, Role.SUPER_ADMIN, client_user.id, {"role": Role.SALES}, cache=cache
    )

    assert client_user.role == Role.SALES.value
    assert cache.get(client_user.id) is None


def test_update_profile_role_by_super_admin(db, super_admin, client_user):
    cache = RoleCache(ttl_seconds=30, max_entries=10)
    cache.put(client_user.id, Role.CLIENT)

    result = profile_service.update_profile_role(
        db, client_user.id, Role.TEAM, by_whom=super_admin.id, cache=cache
    )

    assert isinstance(result, Ok)
    assert result.profile.role == Role.TEAM.value
    # Invalidated before the result is returned
    assert cache.get(client_user.id) is None


@pytest.mark.parametrize("actor_role", [Role.SALES, Role.TEAM, Role.CLIENT])
def test_update_profile_role_requires_super_admin(db, make_profile, client_user, actor_role):
    actor = make_profile(actor_role)

    result = profile_service.update_profile_role(db, client_user.id, Role.TEAM, by_whom=actor.id)

    assert isinstance(result, Denied)
    db.refresh(client_user)
    assert client_user.role == Role.CLIENT.value


def test_update_profile_role_self_promotion_denied(db, client_user):
    result = profile_service.update_profile_role(
        db, client_user.id, Role.SUPER_ADMIN, by_whom=client_user.id
    )
    assert isinstance(result, Denied)


def test_update_profile_role_unknown_actor_or_target(db, super_admin):
    assert isinstance(
        profile_service.update_profile_role(db, uuid.uuid4(), Role.TEAM, by_whom=uuid.uuid4()),
        Denied,
    )
    assert isinstance(
        profile_service.update_profile_role(db, uuid.uuid4(), Role.TEAM, by_whom=super_admin.id),
        Denied,
    )
    assert isinstance(
        profile_service.update_profile_role(db, super_admin.id, "owner", by_whom=super_admin.id),
        Denied,
    )


# =============================================================================
# Portfolio
# =============================================================================

def test_staff_manage_portfolio(db, team_user):
    item = portfolio_service.create_item(
        db,
        team_user.id,
        Role.TEAM,
        title="Storefront",
        category=PortfolioCategory.WEB,
        images=["https://cdn.test/1.png"],
    )
    db.commit()

    portfolio_service.update_item(db, team_user.id, Role.TEAM, item.id, {"category": "design"})
    assert item.category == PortfolioCategory.DESIGN.value

    portfolio_service.delete_item(db, team_user.id, Role.TEAM, item.id)
    db.commit()
    assert portfolio_service.get_item(db, item.id) is None


def test_portfolio_is_public_read(db, sales_user):
    portfolio_service.create_item(
        db, sales_user.id, Role.SALES, title="Campaign", category=PortfolioCategory.MARKETING
    )
    db.commit()

    assert len(portfolio_service.list_items(db)) == 1
    assert portfolio_service.list_items(db, category=PortfolioCategory.WEB) == []


def test_clients_cannot_write_portfolio(db, client_user, team_user):
    with pytest.raises(PolicyDenied):
        portfolio_service.create_item(
            db, client_user.id, Role.CLIENT, title="Mine", category=PortfolioCategory.WEB
        )

    item = portfolio_service.create_item(
        db, team_user.id, Role.TEAM, title="Theirs", category=PortfolioCategory.WEB
    )
    db.commit()

    with pytest.raises(PolicyDenied):
        portfolio_service.update_item(db, client_user.id, Role.CLIENT, item.id, {"title": "x"})
    with pytest.raises(PolicyDenied):
        portfolio_service.delete_item(db, client_user.id, Role.CLIENT, item.id)


def test_portfolio_missing_item(db, team_user):
    with pytest.raises(portfolio_service.PortfolioItemNotFoundError):
        portfolio_service.update_item(db, team_user.id, Role.TEAM, uuid.uuid4(), {"title": "x"})
    with pytest.raises(portfolio_service.PortfolioItemNotFoundError):
        portfolio_service.delete_item(db, team_user.id, Role.TEAM, uuid.uuid4())
