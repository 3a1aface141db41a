# core/authorization.py
from enum import Enum
from typing import Any, Optional
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends
from pydantic import BaseModel, ConfigDict, model_validator
from core.dependencies import get_current_user, CurrentUser
from core.exceptions import ConfigurationError, ForbiddenError, UnauthorizedError
from db.db_operation import mongo_conn
from utils.logger import get_logger

logger = get_logger("Authorization")

class RestaurantRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"

class RestaurantStatus(str, Enum):
    APPLICATION_PENDING = "APPLICATION_PENDING"
    APPLICATION_PROCESSING = "APPLICATION_PROCESSING"
    APPLICATION_ACCEPTED = "APPLICATION_ACCEPTED"
    APPLICATION_REJECTED = "APPLICATION_REJECTED"
    LIVE = "LIVE"
    DISABLED = "DISABLED"

ROLE_RANK = {
    RestaurantRole.USER: 1,
    RestaurantRole.ADMIN: 2,
    RestaurantRole.SUPER_ADMIN: 3,
}

# statuses that mean the application has left the editable stage
APPLICATION_CLOSED_STATUSES = {
    RestaurantStatus.APPLICATION_ACCEPTED.value,
    RestaurantStatus.APPLICATION_REJECTED.value,
    RestaurantStatus.LIVE.value,
    RestaurantStatus.DISABLED.value,
    RestaurantStatus.APPLICATION_PROCESSING.value,
}

# statuses that mean the restaurant has not been accepted
NOT_ACCEPTED_STATUSES = {
    None,
    "",
    RestaurantStatus.APPLICATION_PROCESSING.value,
    RestaurantStatus.APPLICATION_REJECTED.value,
    RestaurantStatus.APPLICATION_PENDING.value,
}

class AccessOptions(BaseModel):
    """Restaurant status filter applied by a guard."""
    model_config = ConfigDict(frozen=True)

    accepted_only: bool = False
    application_only: bool = False

    @model_validator(mode="after")
    def _exclusive(self):
        if self.accepted_only and self.application_only:
            raise ValueError("accepted_only and application_only cannot both be set")
        return self

class AuthContext(BaseModel):
    """Principal plus the restaurant it was authorized against."""
    model_config = ConfigDict(frozen=True)

    principal: CurrentUser
    restaurant: dict[str, Any]
    role: RestaurantRole

    @property
    def restaurant_id(self) -> ObjectId:
        return self.restaurant["_id"]

def _as_role(value) -> Optional[RestaurantRole]:
    try:
        return RestaurantRole(value)
    except ValueError:
        return None

def is_member(principal_id: str, role: RestaurantRole, restaurant: dict) -> bool:
    """Check the restaurant document actually lists the principal under role."""
    if role is RestaurantRole.SUPER_ADMIN:
        return str(restaurant.get("super_admin")) == principal_id
    field = "admins" if role is RestaurantRole.ADMIN else "users"
    return any(str(member) == principal_id for member in restaurant.get(field) or [])

def has_privilege(principal_id: str, claimed_role, required_role: RestaurantRole, restaurant: dict) -> bool:
    claimed = _as_role(claimed_role)
    if claimed is None:
        return False
    if ROLE_RANK[claimed] < ROLE_RANK[required_role]:
        return False
    return is_member(principal_id, claimed, restaurant)

def check_status(restaurant: dict, options: AccessOptions):
    restaurant_status = restaurant.get("status")
    if options.application_only and restaurant_status in APPLICATION_CLOSED_STATUSES:
        raise UnauthorizedError("Unable to access these resources")
    if options.accepted_only and restaurant_status in NOT_ACCEPTED_STATUSES:
        raise UnauthorizedError("Unable to access these resources")

def check_access(
    principal: CurrentUser,
    required_role,
    restaurant: Optional[dict],
    options: AccessOptions = AccessOptions()
) -> AuthContext:
    """
    Decide whether principal may act on restaurant at required_role.

    Checks run in a fixed order and the first failure wins: email
    confirmation, restaurant association, restaurant existence, status
    filters, then privilege. Claimed roles are verified against the
    restaurant's super_admin/admins/users fields.
    """
    role = _as_role(required_role)
    if role is None:
        raise ConfigurationError(f"Restaurant guard expects a restaurant role, got {required_role!r}")

    if not principal.email_confirmed:
        raise ForbiddenError("Access denied - Please confirm your email before accessing these resources")

    association = principal.restaurant
    if association is None or not association.id:
        raise ForbiddenError("Access denied - User has no restaurant associated with them")
    if not association.role:
        raise ForbiddenError("Access denied - User has no role on this restaurant")

    if restaurant is None:
        raise ForbiddenError("Access denied - restaurant not found")

    check_status(restaurant, options)

    if not has_privilege(principal.id, association.role, role, restaurant):
        logger.warning(
            f"Forbidden: {principal.email} as {association.role} cannot access {role.value} resources",
            extra={"restaurant_id": association.id}
        )
        raise ForbiddenError("Access denied - users permissions can't access this route")

    return AuthContext(principal=principal, restaurant=restaurant, role=_as_role(association.role))

async def find_restaurant(restaurant_id: Optional[str]) -> Optional[dict]:
    """Load a restaurant including its privileged staff fields."""
    if not restaurant_id:
        return None
    try:
        oid = ObjectId(restaurant_id)
    except (InvalidId, TypeError):
        return None
    return await mongo_conn.restaurants_collection.find_one({"_id": oid})

async def authorize(
    principal: CurrentUser,
    required_role,
    options: AccessOptions = AccessOptions()
) -> AuthContext:
    if _as_role(required_role) is None:
        raise ConfigurationError(f"Restaurant guard expects a restaurant role, got {required_role!r}")
    restaurant = None
    # the association checks in check_access must still fail first
    if principal.email_confirmed and principal.restaurant and principal.restaurant.role:
        restaurant = await find_restaurant(principal.restaurant.id)
    return check_access(principal, required_role, restaurant, options)

def require_restaurant_role(role: RestaurantRole, options: AccessOptions = AccessOptions()):
    """
    Route dependency factory.

    Example usage in a route:
      async def endpoint(auth: AuthContext = Depends(require_restaurant_role(RestaurantRole.ADMIN))):
           ...
    """
    if _as_role(role) is None:
        raise ConfigurationError(f"Restaurant guard expects a restaurant role, got {role!r}")

    async def _dependency(current_user: CurrentUser = Depends(get_current_user)) -> AuthContext:
        return await authorize(current_user, role, options)

    return _dependency
