import pytest
from bson import ObjectId
from pydantic import ValidationError

from core.authorization import (
    AccessOptions,
    RestaurantRole,
    RestaurantStatus,
    authorize,
    check_access,
    require_restaurant_role,
)
from core.exceptions import ConfigurationError, ForbiddenError, UnauthorizedError
from models.user import RestaurantAssociation
from conftest import make_principal, make_restaurant

ALL_ROLES = [RestaurantRole.USER, RestaurantRole.ADMIN, RestaurantRole.SUPER_ADMIN]


def _staffed_restaurant(status=RestaurantStatus.LIVE.value):
    owner, admin, user = ObjectId(), ObjectId(), ObjectId()
    restaurant = make_restaurant(status=status, super_admin=owner, admins=[admin], users=[user])
    return restaurant, owner, admin, user


@pytest.mark.parametrize("role", ALL_ROLES)
def test_unconfirmed_email_is_denied_for_every_role(role):
    restaurant, owner, _, _ = _staffed_restaurant()
    principal = make_principal(owner, restaurant["_id"], email_confirmed=False)
    with pytest.raises(ForbiddenError) as exc:
        check_access(principal, role, restaurant)
    assert exc.value.status_code == 403
    assert "confirm your email" in exc.value.message


def test_missing_association_is_denied():
    restaurant, owner, _, _ = _staffed_restaurant()
    principal = make_principal(owner, restaurant["_id"])
    principal = principal.model_copy(update={"restaurant": None})
    with pytest.raises(ForbiddenError, match="no restaurant"):
        check_access(principal, RestaurantRole.USER, restaurant)


def test_empty_role_is_denied():
    restaurant, owner, _, _ = _staffed_restaurant()
    principal = make_principal(owner, restaurant["_id"]).model_copy(
        update={"restaurant": RestaurantAssociation(id=str(restaurant["_id"]), role="")}
    )
    with pytest.raises(ForbiddenError, match="no role"):
        check_access(principal, RestaurantRole.USER, restaurant)


def test_missing_restaurant_is_denied():
    principal = make_principal(ObjectId(), ObjectId())
    with pytest.raises(ForbiddenError, match="restaurant not found"):
        check_access(principal, RestaurantRole.USER, None)


def test_invalid_required_role_is_a_configuration_error():
    restaurant, owner, _, _ = _staffed_restaurant()
    principal = make_principal(owner, restaurant["_id"], email_confirmed=False)
    with pytest.raises(ConfigurationError) as exc:
        check_access(principal, "OWNER", restaurant)
    assert exc.value.status_code == 500


def test_guard_factory_rejects_invalid_role():
    with pytest.raises(ConfigurationError):
        require_restaurant_role("MANAGER")


def test_options_cannot_combine_filters():
    with pytest.raises(ValidationError):
        AccessOptions(accepted_only=True, application_only=True)


@pytest.mark.parametrize("status", [
    RestaurantStatus.APPLICATION_ACCEPTED.value,
    RestaurantStatus.LIVE.value,
    RestaurantStatus.APPLICATION_PROCESSING.value,
    RestaurantStatus.APPLICATION_REJECTED.value,
    RestaurantStatus.DISABLED.value,
])
def test_application_only_denies_closed_applications(status):
    restaurant, owner, _, _ = _staffed_restaurant(status)
    principal = make_principal(owner, restaurant["_id"])
    with pytest.raises(UnauthorizedError) as exc:
        check_access(principal, RestaurantRole.SUPER_ADMIN, restaurant, AccessOptions(application_only=True))
    assert exc.value.status_code == 401


@pytest.mark.parametrize("status", [None, "", RestaurantStatus.APPLICATION_PENDING.value])
def test_application_only_allows_open_applications(status):
    restaurant, owner, _, _ = _staffed_restaurant(status)
    principal = make_principal(owner, restaurant["_id"])
    ctx = check_access(principal, RestaurantRole.SUPER_ADMIN, restaurant, AccessOptions(application_only=True))
    assert ctx.restaurant_id == restaurant["_id"]


@pytest.mark.parametrize("status", [
    None,
    "",
    RestaurantStatus.APPLICATION_PROCESSING.value,
    RestaurantStatus.APPLICATION_REJECTED.value,
    RestaurantStatus.APPLICATION_PENDING.value,
])
def test_accepted_only_denies_unaccepted(status):
    restaurant, owner, _, _ = _staffed_restaurant(status)
    principal = make_principal(owner, restaurant["_id"])
    with pytest.raises(UnauthorizedError):
        check_access(principal, RestaurantRole.SUPER_ADMIN, restaurant, AccessOptions(accepted_only=True))


@pytest.mark.parametrize("status", [
    RestaurantStatus.APPLICATION_ACCEPTED.value,
    RestaurantStatus.LIVE.value,
    RestaurantStatus.DISABLED.value,
])
def test_accepted_only_allows_accepted(status):
    restaurant, owner, _, _ = _staffed_restaurant(status)
    principal = make_principal(owner, restaurant["_id"])
    check_access(principal, RestaurantRole.SUPER_ADMIN, restaurant, AccessOptions(accepted_only=True))


def test_status_filter_runs_before_privilege_check():
    restaurant, _, _, _ = _staffed_restaurant(RestaurantStatus.APPLICATION_PENDING.value)
    stranger = make_principal(ObjectId(), restaurant["_id"], role=RestaurantRole.USER.value)
    with pytest.raises(UnauthorizedError):
        check_access(stranger, RestaurantRole.SUPER_ADMIN, restaurant, AccessOptions(accepted_only=True))


@pytest.mark.parametrize("required", ALL_ROLES)
def test_super_admin_passes_every_requirement(required):
    restaurant, owner, _, _ = _staffed_restaurant()
    principal = make_principal(owner, restaurant["_id"], role=RestaurantRole.SUPER_ADMIN.value)
    ctx = check_access(principal, required, restaurant)
    assert ctx.role is RestaurantRole.SUPER_ADMIN


@pytest.mark.parametrize("required, allowed", [
    (RestaurantRole.USER, True),
    (RestaurantRole.ADMIN, True),
    (RestaurantRole.SUPER_ADMIN, False),
])
def test_admin_hierarchy(required, allowed):
    restaurant, _, admin, _ = _staffed_restaurant()
    principal = make_principal(admin, restaurant["_id"], role=RestaurantRole.ADMIN.value)
    if allowed:
        assert check_access(principal, required, restaurant).role is RestaurantRole.ADMIN
    else:
        with pytest.raises(ForbiddenError, match="permissions"):
            check_access(principal, required, restaurant)


@pytest.mark.parametrize("required, allowed", [
    (RestaurantRole.USER, True),
    (RestaurantRole.ADMIN, False),
    (RestaurantRole.SUPER_ADMIN, False),
])
def test_user_hierarchy(required, allowed):
    restaurant, _, _, user = _staffed_restaurant()
    principal = make_principal(user, restaurant["_id"], role=RestaurantRole.USER.value)
    if allowed:
        check_access(principal, required, restaurant)
    else:
        with pytest.raises(ForbiddenError):
            check_access(principal, required, restaurant)


def test_claimed_super_admin_role_without_membership_is_denied():
    restaurant, _, admin, _ = _staffed_restaurant()
    spoofed = make_principal(admin, restaurant["_id"], role=RestaurantRole.SUPER_ADMIN.value)
    for required in ALL_ROLES:
        with pytest.raises(ForbiddenError):
            check_access(spoofed, required, restaurant)


def test_claimed_admin_role_for_listed_user_is_denied():
    restaurant, _, _, user = _staffed_restaurant()
    spoofed = make_principal(user, restaurant["_id"], role=RestaurantRole.ADMIN.value)
    with pytest.raises(ForbiddenError):
        check_access(spoofed, RestaurantRole.USER, restaurant)


def test_unknown_claimed_role_is_denied():
    restaurant, owner, _, _ = _staffed_restaurant()
    principal = make_principal(owner, restaurant["_id"], role="OWNER")
    with pytest.raises(ForbiddenError):
        check_access(principal, RestaurantRole.USER, restaurant)


async def test_authorize_loads_restaurant_with_staff_fields(mock_db):
    restaurant, owner, _, _ = _staffed_restaurant()
    await mock_db["restaurants"].insert_one(restaurant)
    principal = make_principal(owner, restaurant["_id"])
    ctx = await authorize(principal, RestaurantRole.SUPER_ADMIN, AccessOptions(accepted_only=True))
    assert ctx.restaurant["super_admin"] == owner
    assert ctx.principal.id == str(owner)


async def test_authorize_denies_when_restaurant_was_removed(mock_db):
    principal = make_principal(ObjectId(), ObjectId())
    with pytest.raises(ForbiddenError, match="restaurant not found"):
        await authorize(principal, RestaurantRole.USER)


async def test_authorize_treats_malformed_restaurant_id_as_missing(mock_db):
    principal = make_principal(ObjectId(), "not-an-object-id")
    with pytest.raises(ForbiddenError, match="restaurant not found"):
        await authorize(principal, RestaurantRole.USER)
