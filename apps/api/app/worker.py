"""
Celery worker for the matching service.

Start worker:    celery -A app.worker worker --loglevel=info
Start beat:      celery -A app.worker beat --loglevel=info
Start both:      celery -A app.worker worker --beat --loglevel=info
"""
from celery import Celery
from celery.schedules import crontab

from app.core.celery_config import (
    CELERY_QUEUES,
    CELERY_TASK_ANNOTATIONS,
    CELERY_TASK_ROUTES,
)
from app.core.config import settings
from app.core.sentry import init_sentry

celery_app = Celery(
    "estate_match_worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.REDIS_URL,
    include=[
        "app.modules.signals.tasks",
    ],
)

init_sentry(
    settings.SENTRY_DSN,
    environment=settings.SENTRY_ENVIRONMENT,
    release=settings.APP_VERSION,
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    result_expires=86400,  # 24h
    task_queues=CELERY_QUEUES,
    task_default_queue="default",
    task_routes=CELERY_TASK_ROUTES,
    task_annotations=CELERY_TASK_ANNOTATIONS,
)

celery_app.conf.beat_schedule = {
    # ── Signal → investor relevance mapping ──────────────────────────────────
    "match-unmapped-signals": {
        "task": "tasks.match_unmapped_signals_all_orgs",
        "schedule": crontab(minute="*/15"),  # every 15 minutes
    },
}
