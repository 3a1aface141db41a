# services/deal_service.py
from datetime import datetime
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import status
from pymongo.errors import PyMongoError
from core.authorization import AuthContext
from core.exceptions import (
    AlreadyExpiredError,
    InvalidDateRangeError,
    NoMatchingLocationsError,
    NotFoundError,
    OwnershipError,
    QuotaExceededError,
)
from db.db_operation import mongo_conn
from models.deal import DealCreate, DealEdit
from services.restaurant_service import location_id
from settings.config import settings
from utils.dates import resolve_current_date, utcnow
from utils.logger import get_logger

logger = get_logger("Deal_Service")

# fields removed when a deal is reused as the starting point of a new one
TEMPLATE_HIDDEN_FIELDS = (
    "views", "saves", "restaurant", "cuisines", "dietary_requirements",
    "created_at", "updated_at", "is_expired", "start_date", "end_date", "locations",
)

def active_deals_filter(restaurant_id: ObjectId, current_date: datetime) -> dict:
    return {
        "restaurant.id": restaurant_id,
        "$or": [{"is_expired": False}, {"end_date": {"$gt": current_date}}]
    }

def capitalize_sentence(text: str) -> str:
    text = text.strip()
    return text[:1].upper() + text[1:]

def map_locations(location_ids: list[str], restaurant: dict) -> list[dict]:
    """
    Resolve submitted location ids against the restaurant's locations.
    Unknown ids are dropped; an empty result is rejected.
    """
    by_id = {location_id(loc): loc for loc in restaurant.get("locations") or [] if location_id(loc)}
    mapped = []
    for lid in location_ids:
        loc = by_id.get(lid)
        if loc is None:
            continue
        mapped.append({"location_id": lid, "geometry": loc.get("geometry"), "nickname": loc.get("nickname")})
    if not mapped:
        raise NoMatchingLocationsError()
    return mapped

def parse_deal_id(deal_id: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> ObjectId:
    try:
        return ObjectId(deal_id)
    except (InvalidId, TypeError):
        raise NotFoundError("Deal not found", status_code)

async def load_owned_deal(ctx: AuthContext, deal_id: str, action: str) -> dict:
    """
    Fetch a deal by id and make sure it belongs to the acting restaurant.
    Deal ids are global, so a valid id from another restaurant is refused.
    """
    deal = await mongo_conn.deals_collection.find_one({"_id": parse_deal_id(deal_id)})
    if not deal:
        raise NotFoundError("Deal not found")
    owner = (deal.get("restaurant") or {}).get("id")
    if str(owner) != str(ctx.restaurant_id):
        logger.warning(
            f"{ctx.principal.email} tried to {action} deal {deal_id} owned by another restaurant",
            extra={"restaurant_id": str(ctx.restaurant_id)}
        )
        raise OwnershipError(f"Unauthorized to {action} this deal")
    return deal

async def count_active_deals(restaurant_id: ObjectId, current_date: datetime) -> int:
    return await mongo_conn.deals_collection.count_documents(active_deals_filter(restaurant_id, current_date))

def deal_quota(restaurant: dict) -> int:
    return len(restaurant.get("locations") or []) * settings.DEALS_PER_LOCATION

async def create_deal(ctx: AuthContext, payload: DealCreate, current_date: datetime | None = None):
    """
    Create a deal for the acting restaurant.
    The restaurant may run at most DEALS_PER_LOCATION active deals per location.
    """
    restaurant = ctx.restaurant
    current_date = resolve_current_date(current_date)

    active_count = await count_active_deals(ctx.restaurant_id, current_date)
    if active_count >= deal_quota(restaurant):
        logger.info(f"Deal quota reached for restaurant {ctx.restaurant_id}: {active_count} active")
        raise QuotaExceededError()

    locations = map_locations(payload.locations, restaurant)

    now = utcnow()
    doc = {
        "restaurant": {"id": ctx.restaurant_id, "name": restaurant.get("name")},
        "name": capitalize_sentence(payload.name),
        "description": payload.description,
        "start_date": payload.start_date,
        "end_date": payload.end_date,
        "is_expired": False,
        "locations": locations,
        "cuisines": restaurant.get("cuisines", []),
        "dietary_requirements": restaurant.get("dietary_requirements", []),
        "views": {"count": 0, "users": []},
        "saves": {"count": 0, "users": []},
        "created_at": now,
        "updated_at": now
    }
    try:
        result = await mongo_conn.deals_collection.insert_one(doc)
    except PyMongoError:
        logger.exception("DB error creating deal")
        raise
    logger.info("Deal created", extra={"actor": ctx.principal.email, "deal_id": str(result.inserted_id)})
    return str(result.inserted_id)

async def edit_deal(ctx: AuthContext, deal_id: str, payload: DealEdit):
    locations = map_locations(payload.locations, ctx.restaurant)
    deal = await load_owned_deal(ctx, deal_id, "edit")
    if payload.end_date < deal["start_date"]:
        raise InvalidDateRangeError()
    await mongo_conn.deals_collection.update_one(
        {"_id": deal["_id"]},
        {"$set": {
            "name": payload.name,
            "description": payload.description,
            "end_date": payload.end_date,
            "locations": locations,
            "updated_at": utcnow()
        }}
    )
    logger.info("Deal edited", extra={"actor": ctx.principal.email, "deal_id": deal_id})

async def delete_deal(ctx: AuthContext, deal_id: str):
    deal = await load_owned_deal(ctx, deal_id, "delete")
    await mongo_conn.deals_collection.delete_one({"_id": deal["_id"]})
    logger.info("Deal deleted", extra={"actor": ctx.principal.email, "deal_id": deal_id})

async def expire_deal(ctx: AuthContext, deal_id: str, end_date: datetime):
    deal = await load_owned_deal(ctx, deal_id, "expire")
    if deal.get("is_expired"):
        raise AlreadyExpiredError()
    if end_date < deal["start_date"]:
        raise InvalidDateRangeError()
    await mongo_conn.deals_collection.update_one(
        {"_id": deal["_id"]},
        {"$set": {"is_expired": True, "end_date": end_date, "updated_at": utcnow()}}
    )
    logger.info("Deal expired", extra={"actor": ctx.principal.email, "deal_id": deal_id})

async def get_deal_template(ctx: AuthContext, deal_id: str) -> dict:
    """Deal content without stats, dates or expiry, for pre-filling a new deal."""
    oid = parse_deal_id(deal_id, status.HTTP_402_PAYMENT_REQUIRED)
    deal = await mongo_conn.deals_collection.find_one({"_id": oid, "restaurant.id": ctx.restaurant_id})
    if not deal:
        raise NotFoundError("Deal not found", status.HTTP_402_PAYMENT_REQUIRED)
    template = {k: v for k, v in deal.items() if k not in TEMPLATE_HIDDEN_FIELDS and k != "_id"}
    template["id"] = str(deal["_id"])
    return template
