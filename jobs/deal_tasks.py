"""
Periodic deal maintenance tasks.
"""

from pymongo import MongoClient
from pymongo.errors import PyMongoError
from jobs.celery_worker import celery_app
from services.deal_expiry import expire_stale_deals
from settings.config import settings
from utils.dates import utcnow
from utils.logger import get_logger

logger = get_logger("Deal_Tasks")

_client = None

def get_deals_collection():
    # workers are synchronous, so they use pymongo rather than the API's motor client
    global _client
    if _client is None:
        _client = MongoClient(settings.MONGO_URI)
    return _client[settings.DB_NAME]["deals"]


@celery_app.task(bind=True, name='jobs.deal_tasks.expire_deals')
def expire_deals(self) -> dict:
    """
    Expire every deal whose end date has passed.
    Errors are logged and reported in the result; the next beat run retries.
    """
    started = utcnow()
    try:
        expired = expire_stale_deals(get_deals_collection(), now=started)
    except PyMongoError as e:
        logger.exception(f"Task {self.request.id}: deal expiry sweep failed")
        return {'success': False, 'expired': 0, 'error': str(e), 'run_at': started.isoformat()}
    return {'success': True, 'expired': expired, 'run_at': started.isoformat()}
