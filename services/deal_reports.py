# services/deal_reports.py
"""
Read-only deal reporting.

Storage reads return raw deal documents; the derive_* helpers compute the
reported figures (unique views, days left/active, daily averages) and are
pure so they can be exercised without a database.
"""
from datetime import datetime
from fastapi import status
from pymongo import DESCENDING
from core.authorization import AuthContext
from core.exceptions import NotFoundError
from db.db_operation import mongo_conn
from services.deal_service import active_deals_filter, parse_deal_id
from utils.dates import day_diff, resolve_current_date
from utils.logger import get_logger

logger = get_logger("Deal_Reports")

LIST_HIDDEN_FIELDS = (
    "locations", "restaurant", "cuisines", "dietary_requirements", "created_at", "description",
)
DETAIL_HIDDEN_FIELDS = ("restaurant", "cuisines", "dietary_requirements", "created_at")

def expired_deals_filter(restaurant_id, current_date: datetime) -> dict:
    return {
        "restaurant.id": restaurant_id,
        "$or": [{"is_expired": True}, {"end_date": {"$lte": current_date}}]
    }

def unique_view_count(deal: dict) -> int:
    users = (deal.get("views") or {}).get("users") or []
    return len({str(u) for u in users})

def daily_average(metric: int | float, days_active: int) -> float:
    """Per-day rate; brand new deals or empty metrics report the raw figure."""
    if days_active >= 1 and metric >= 1:
        return metric / days_active
    return metric

def _strip_counter(counter: dict | None) -> dict:
    return {k: v for k, v in (counter or {}).items() if k != "users"}

def _base_view(deal: dict, hidden: tuple) -> dict:
    out = {k: v for k, v in deal.items() if k not in hidden and k != "_id"}
    out["id"] = str(deal["_id"])
    out["views"] = _strip_counter(deal.get("views"))
    out["saves"] = _strip_counter(deal.get("saves"))
    return out

def derive_active_summary(deal: dict, current_date: datetime) -> dict:
    out = _base_view(deal, LIST_HIDDEN_FIELDS)
    out["unique_views"] = unique_view_count(deal)
    out["days_left"] = day_diff(current_date, deal["end_date"])
    out["days_active"] = day_diff(deal["start_date"], current_date)
    return out

def derive_expired_summary(deal: dict) -> dict:
    out = _base_view(deal, LIST_HIDDEN_FIELDS)
    out["unique_views"] = unique_view_count(deal)
    out["days_active"] = day_diff(deal["start_date"], deal["end_date"])
    return out

def derive_detail(deal: dict, current_date: datetime) -> dict:
    out = _base_view(deal, DETAIL_HIDDEN_FIELDS)
    days_active = day_diff(deal["start_date"], current_date)
    unique = unique_view_count(deal)
    out["days_active"] = days_active
    out["unique_views"] = {"count": unique, "avg": daily_average(unique, days_active)}
    out["views"]["avg"] = daily_average(out["views"].get("count", 0), days_active)
    out["saves"]["avg"] = daily_average(out["saves"].get("count", 0), days_active)
    return out

async def _find_deals(query: dict) -> list[dict]:
    cursor = mongo_conn.deals_collection.find(query).sort("updated_at", DESCENDING)
    return await cursor.to_list(length=None)

async def list_active_deals(ctx: AuthContext, current_date: datetime | None = None) -> list[dict]:
    current_date = resolve_current_date(current_date)
    deals = await _find_deals(active_deals_filter(ctx.restaurant_id, current_date))
    logger.debug(f"{len(deals)} active deals for restaurant {ctx.restaurant_id}")
    return [derive_active_summary(d, current_date) for d in deals]

async def list_expired_deals(ctx: AuthContext, current_date: datetime | None = None) -> list[dict]:
    current_date = resolve_current_date(current_date)
    deals = await _find_deals(expired_deals_filter(ctx.restaurant_id, current_date))
    logger.debug(f"{len(deals)} expired deals for restaurant {ctx.restaurant_id}")
    return [derive_expired_summary(d) for d in deals]

async def get_deal_detail(ctx: AuthContext, deal_id: str, current_date: datetime | None = None) -> dict:
    oid = parse_deal_id(deal_id, status.HTTP_402_PAYMENT_REQUIRED)
    deal = await mongo_conn.deals_collection.find_one({"_id": oid, "restaurant.id": ctx.restaurant_id})
    if not deal:
        raise NotFoundError("Deal not found", status.HTTP_402_PAYMENT_REQUIRED)
    return derive_detail(deal, resolve_current_date(current_date))
