# services/deal_expiry.py
from datetime import datetime
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from utils.dates import to_naive_utc, utcnow
from utils.logger import get_logger

logger = get_logger("Deal_Expiry")

def expire_stale_deals(deals_collection: Collection, now: datetime | None = None) -> int:
    """
    Flag every deal whose end date has passed as expired.

    Each deal is updated on its own with is_expired=False in the filter, so a
    rerun (or a deal expired manually in between) is a no-op. A failure on
    one deal is logged and the sweep moves on to the next.
    Returns the number of deals that were expired by this pass.
    """
    now = to_naive_utc(now) if now is not None else utcnow()
    stale = deals_collection.find({"is_expired": False, "end_date": {"$lte": now}}, {"_id": 1})
    expired = 0
    failed = 0
    for deal in stale:
        try:
            result = deals_collection.update_one(
                {"_id": deal["_id"], "is_expired": False},
                {"$set": {"is_expired": True}}
            )
            expired += result.modified_count
        except PyMongoError:
            failed += 1
            logger.exception(f"Failed to expire deal {deal['_id']}")
    logger.info(f"Deal expiry sweep finished: {expired} expired, {failed} failed", extra={"run_at": now.isoformat()})
    return expired
