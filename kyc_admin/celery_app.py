"""Celery application configuration."""

from celery import Celery

from kyc_admin.config import get_settings

settings = get_settings()

app = Celery(
    "kyc_admin",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["kyc_admin.tasks.notifications"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=120,  # 2 minutes max per task
    task_soft_time_limit=90,
)
