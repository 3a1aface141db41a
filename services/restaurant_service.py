# services/restaurant_service.py
from db.db_operation import mongo_conn
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import status
from pymongo.errors import PyMongoError
from core.authorization import AuthContext, RestaurantRole, RestaurantStatus
from core.dependencies import CurrentUser
from core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from models.restaurant import LocationUpdate, RestaurantCreate, RestaurantUpdate
from utils.dates import utcnow
from utils.logger import get_logger

logger = get_logger("Restaurant_Service")

STAFF_ROLE_FIELDS = {
    RestaurantRole.ADMIN: "admins",
    RestaurantRole.USER: "users",
}

# platform review moves a restaurant along these edges only
ALLOWED_TRANSITIONS = {
    RestaurantStatus.APPLICATION_PROCESSING: {RestaurantStatus.APPLICATION_ACCEPTED, RestaurantStatus.APPLICATION_REJECTED},
    RestaurantStatus.APPLICATION_REJECTED: {RestaurantStatus.APPLICATION_PENDING},
    RestaurantStatus.APPLICATION_ACCEPTED: {RestaurantStatus.LIVE, RestaurantStatus.DISABLED},
    RestaurantStatus.LIVE: {RestaurantStatus.DISABLED},
    RestaurantStatus.DISABLED: {RestaurantStatus.LIVE},
}

def location_id(location: dict) -> str | None:
    raw = location.get("_id") or location.get("id")
    return str(raw) if raw else None

def restaurant_summary(doc: dict, role: str | None = None) -> dict:
    """Public restaurant view; never exposes super_admin/admins/users."""
    return {
        "id": str(doc["_id"]),
        "name": doc["name"],
        "status": doc.get("status"),
        "cuisines": doc.get("cuisines", []),
        "dietary_requirements": doc.get("dietary_requirements", []),
        "locations": [
            {"id": location_id(loc), "nickname": loc.get("nickname"), "geometry": loc.get("geometry")}
            for loc in doc.get("locations", [])
        ],
        "role": role,
        "created_at": doc.get("created_at").isoformat() if doc.get("created_at") else None,
        "updated_at": doc.get("updated_at").isoformat() if doc.get("updated_at") else None
    }

async def create_restaurant_application(payload: RestaurantCreate, user: CurrentUser):
    """
    Create a restaurant application owned by user, who becomes its super admin.
    A user can only ever be associated with one restaurant.
    """
    if not user.email_confirmed:
        raise ForbiddenError("Access denied - Please confirm your email before accessing these resources")
    if user.restaurant is not None and user.restaurant.id:
        raise BadRequestError("User is already associated with a restaurant")

    now = utcnow()
    owner_id = ObjectId(user.id)
    doc = {
        "name": payload.name,
        "status": RestaurantStatus.APPLICATION_PENDING.value,
        "super_admin": owner_id,
        "admins": [],
        "users": [],
        "locations": [
            {"_id": ObjectId(), "nickname": loc.nickname, "geometry": loc.geometry.model_dump()}
            for loc in payload.locations
        ],
        "cuisines": payload.cuisines,
        "dietary_requirements": payload.dietary_requirements,
        "created_at": now,
        "updated_at": now
    }
    try:
        result = await mongo_conn.restaurants_collection.insert_one(doc)
        await mongo_conn.users_collection.update_one(
            {"_id": owner_id},
            {"$set": {
                "restaurant": {"id": result.inserted_id, "role": RestaurantRole.SUPER_ADMIN.value},
                "updated_at": now
            }}
        )
    except PyMongoError:
        logger.exception("DB error creating restaurant")
        raise
    doc["_id"] = result.inserted_id
    logger.info("Restaurant application created", extra={"actor": user.email, "restaurant_id": str(result.inserted_id)})
    return restaurant_summary(doc, RestaurantRole.SUPER_ADMIN.value)

async def submit_application(ctx: AuthContext):
    restaurant = ctx.restaurant
    if not restaurant.get("locations"):
        raise BadRequestError("Add at least one location before submitting the application")
    result = await mongo_conn.restaurants_collection.update_one(
        {"_id": ctx.restaurant_id},
        {"$set": {"status": RestaurantStatus.APPLICATION_PROCESSING.value, "updated_at": utcnow()}}
    )
    if result.matched_count == 0:
        raise NotFoundError("Restaurant not found")
    logger.info("Restaurant application submitted", extra={"actor": ctx.principal.email, "restaurant_id": str(ctx.restaurant_id)})
    return {"message": "application_submitted", "status": RestaurantStatus.APPLICATION_PROCESSING.value}

def _merge_locations(submitted: list[LocationUpdate], existing: list[dict]) -> list[dict]:
    known = {location_id(loc): loc for loc in existing if location_id(loc)}
    merged = []
    for loc in submitted:
        if loc.id is None:
            oid = ObjectId()
        elif loc.id in known:
            oid = known[loc.id].get("_id") or known[loc.id].get("id")
        else:
            raise BadRequestError(f"Unknown location id: {loc.id}")
        merged.append({"_id": oid, "nickname": loc.nickname, "geometry": loc.geometry.model_dump()})
    return merged

async def update_restaurant(ctx: AuthContext, payload: RestaurantUpdate):
    """
    Update name, cuisines, dietary requirements or locations of the acting restaurant.
    Locations submitted with an id keep it; new ones get a fresh id. Only an
    application still being drafted may drop to zero locations.
    """
    restaurant = ctx.restaurant
    update_doc = {k: v for k, v in payload.model_dump(exclude={"locations"}).items() if v is not None}
    if payload.locations is not None:
        if not payload.locations and restaurant.get("status") != RestaurantStatus.APPLICATION_PENDING.value:
            raise BadRequestError("A restaurant needs at least one location")
        update_doc["locations"] = _merge_locations(payload.locations, restaurant.get("locations") or [])
    if not update_doc:
        raise BadRequestError("Nothing to update")
    update_doc["updated_at"] = utcnow()

    result = await mongo_conn.restaurants_collection.update_one({"_id": ctx.restaurant_id}, {"$set": update_doc})
    if result.matched_count == 0:
        raise NotFoundError("Restaurant not found")
    logger.info("Restaurant updated", extra={"actor": ctx.principal.email, "restaurant_id": str(ctx.restaurant_id)})
    return restaurant_summary({**restaurant, **update_doc}, ctx.role.value)

async def change_restaurant_status(restaurant_id: str, new_status: str, actor_email: str = None):
    """Platform review: accept, reject, go live, disable or re-enable a restaurant."""
    try:
        target = RestaurantStatus(new_status)
    except ValueError:
        raise BadRequestError(f"Invalid restaurant status: {new_status}")
    try:
        oid = ObjectId(restaurant_id)
    except (InvalidId, TypeError):
        raise BadRequestError("Invalid restaurant id")

    restaurants = mongo_conn.restaurants_collection
    restaurant = await restaurants.find_one({"_id": oid})
    if not restaurant:
        raise NotFoundError("Restaurant not found", status.HTTP_404_NOT_FOUND)
    try:
        current = RestaurantStatus(restaurant.get("status"))
    except ValueError:
        current = None
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise BadRequestError(f"Cannot change restaurant status from {restaurant.get('status')} to {target.value}")

    # guard against a concurrent review moving it first
    result = await restaurants.update_one(
        {"_id": oid, "status": restaurant.get("status")},
        {"$set": {"status": target.value, "updated_at": utcnow()}}
    )
    if result.modified_count == 0:
        raise BadRequestError("Restaurant status changed concurrently, try again")
    logger.info(f"{actor_email} moved restaurant {restaurant_id} from {restaurant.get('status')} to {target.value}")
    return {"message": "status_changed", "id": restaurant_id, "status": target.value}

def _parse_user_id(user_id: str) -> ObjectId:
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        raise NotFoundError("User not found")

async def assign_staff(ctx: AuthContext, user_id: str, role: str):
    """
    Add a user to the restaurant roster as ADMIN or USER.
    The super admin can never be listed in admins/users, and a user may
    only belong to one restaurant.
    """
    try:
        staff_role = RestaurantRole(role)
    except ValueError:
        raise BadRequestError(f"Invalid staff role: {role}")
    if staff_role not in STAFF_ROLE_FIELDS:
        raise BadRequestError("Staff can only be assigned the ADMIN or USER role")

    oid = _parse_user_id(user_id)
    restaurant = ctx.restaurant
    if str(restaurant.get("super_admin")) == str(oid):
        raise BadRequestError("The restaurant super admin cannot be assigned a staff role")

    users_col = mongo_conn.users_collection
    user = await users_col.find_one({"_id": oid}, {"password": 0})
    if not user:
        raise NotFoundError("User not found")
    association = user.get("restaurant") or {}
    if association.get("id") and association["id"] != ctx.restaurant_id:
        raise BadRequestError("User is already associated with another restaurant")

    target_field = STAFF_ROLE_FIELDS[staff_role]
    other_field = "users" if target_field == "admins" else "admins"
    now = utcnow()
    await mongo_conn.restaurants_collection.update_one(
        {"_id": ctx.restaurant_id},
        {
            "$addToSet": {target_field: oid},
            "$pull": {other_field: oid},
            "$set": {"updated_at": now}
        }
    )
    await users_col.update_one(
        {"_id": oid},
        {
            "$set": {"restaurant": {"id": ctx.restaurant_id, "role": staff_role.value}, "updated_at": now},
            "$inc": {"token_version": 1}
        }
    )
    logger.info(f"{ctx.principal.email} assigned {user['email']} as {staff_role.value}", extra={"restaurant_id": str(ctx.restaurant_id)})
    return {"message": "staff_assigned", "user_id": user_id, "role": staff_role.value}

async def remove_staff(ctx: AuthContext, user_id: str):
    oid = _parse_user_id(user_id)
    restaurant = ctx.restaurant
    if str(restaurant.get("super_admin")) == str(oid):
        raise BadRequestError("The restaurant super admin cannot be removed")
    listed_as_admin = any(str(a) == str(oid) for a in restaurant.get("admins") or [])
    listed_as_user = any(str(u) == str(oid) for u in restaurant.get("users") or [])
    if not listed_as_admin and not listed_as_user:
        raise NotFoundError("User is not a member of this restaurant")
    # admins can only remove plain users; removing an admin takes the super admin
    if listed_as_admin and ctx.role is not RestaurantRole.SUPER_ADMIN:
        raise ForbiddenError("Access denied - only the super admin can remove an admin")

    now = utcnow()
    await mongo_conn.restaurants_collection.update_one(
        {"_id": ctx.restaurant_id},
        {"$pull": {"admins": oid, "users": oid}, "$set": {"updated_at": now}}
    )
    await mongo_conn.users_collection.update_one(
        {"_id": oid, "restaurant.id": ctx.restaurant_id},
        {"$set": {"restaurant": None, "updated_at": now}, "$inc": {"token_version": 1}}
    )
    logger.info(f"{ctx.principal.email} removed {user_id} from restaurant", extra={"restaurant_id": str(ctx.restaurant_id)})
    return {"message": "staff_removed", "user_id": user_id}
