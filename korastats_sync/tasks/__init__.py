from celery import Celery
from celery.schedules import crontab

from korastats_sync.config import get_settings

settings = get_settings()

celery_app = Celery(
    "korastats_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["korastats_sync.tasks.sync_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # One full sync at a time per worker process
    worker_prefetch_multiplier=1,
)

if settings.sync_schedule_enabled:
    celery_app.conf.beat_schedule = {
        "full-sync-daily": {
            "task": "korastats_sync.tasks.sync_tasks.full_sync",
            "schedule": crontab(hour=3, minute=0),
        },
        "sync-matches-every-2h": {
            "task": "korastats_sync.tasks.sync_tasks.sync_matches",
            "schedule": crontab(minute=15, hour="*/2"),
        },
        "sync-standings-hourly": {
            "task": "korastats_sync.tasks.sync_tasks.sync_phase",
            "schedule": crontab(minute=45),
            "kwargs": {"phase": "standings"},
        },
    }
else:
    celery_app.conf.beat_schedule = {}
