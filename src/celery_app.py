"""Celery application configuration."""

from celery import Celery
from celery.schedules import crontab

from src.config import get_settings

settings = get_settings()

app = Celery(
    "signin",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["src.tasks.token_cleanup"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_time_limit=120,
    beat_schedule={
        "purge-expired-remember-tokens": {
            "task": "src.tasks.token_cleanup.purge_expired_remember_tokens",
            "schedule": crontab(minute=0),  # hourly
        },
    },
)
