"""Celery task definitions."""

from celery import Celery

from jingler.config import get_settings

settings = get_settings()

celery_app = Celery(
    "jingler",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    beat_schedule={
        "sweep-staging": {
            "task": "jingler.sweep_staging",
            "schedule": float(settings.staging_ttl_seconds),
        },
    },
)


@celery_app.task(name="jingler.sweep_staging")
def sweep_staging_task(ttl_seconds: int | None = None) -> dict:
    """Delete staging entries and orphaned temp files past their TTL."""
    from jingler.pipeline.finalizer import Finalizer
    from jingler.storage.staging import StagingStore

    staging = StagingStore()
    finalizer = Finalizer(staging=staging)
    ttl = ttl_seconds or settings.staging_ttl_seconds
    return {
        "staging_removed": staging.sweep_expired(ttl),
        "temp_removed": finalizer.sweep_orphans(ttl),
    }
