from celery import Celery
from kombu import Queue

from app.platform.config import settings


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Queue Structure:
    - scan.crawl: Budgeted crawls (Selenium), one tracker per task

    A crawl task owns its runner and tracker for its whole lifetime, so
    worker concurrency never shares crawl state between scans.
    """
    celery_app = Celery(
        "scan_profiles",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
    )

    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer=settings.CELERY_RESULT_SERIALIZER,
        accept_content=[settings.CELERY_ACCEPT_CONTENT],
        timezone="UTC",
        enable_utc=True,
        task_track_started=settings.CELERY_TASK_TRACK_STARTED,
        task_time_limit=settings.CELERY_TASK_TIME_LIMIT,

        result_expires=3600,

        task_routes={
            "app.features.scan_profiles.workers.tasks.run_budgeted_crawl": {"queue": "scan.crawl"},
        },

        task_queues=(
            Queue("default"),
            Queue("scan.crawl"),
        ),

        task_default_queue="default",

        # One long crawl per prefetch slot
        worker_prefetch_multiplier=1,

        task_acks_late=True,
        task_reject_on_worker_lost=True,
    )

    celery_app.autodiscover_tasks(["app.features.scan_profiles.workers"])

    return celery_app


# Global Celery app instance
celery_app = create_celery_app()
