"""
Celery Worker Configuration
Sets up Celery with Redis as broker and the beat schedule for periodic jobs.

Run a worker with the embedded scheduler:
    celery -A jobs.celery_worker.celery_app worker -B --loglevel=info
"""

from celery import Celery
from settings.config import settings

celery_app = Celery(
    'foodie_worker',
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=['jobs.deal_tasks']
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    worker_prefetch_multiplier=1,
    result_expires=3600,
    task_acks_late=True,
    broker_connection_retry_on_startup=True,

    beat_schedule={
        'expire-stale-deals': {
            'task': 'jobs.deal_tasks.expire_deals',
            'schedule': float(settings.DEAL_EXPIRY_INTERVAL_SECONDS),
        },
    },
)


if __name__ == '__main__':
    celery_app.start()
