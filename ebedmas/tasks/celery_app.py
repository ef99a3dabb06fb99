# ============================================================================
# Celery Application Configuration
# ============================================================================
from celery import Celery
from ebedmas.config import get_settings

settings = get_settings()

celery_app = Celery(
    "ebedmas",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=[
        "ebedmas.tasks.subscription_tasks",
    ]
)

# Celery Configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

# Beat Schedule (Periodic Tasks)
celery_app.conf.beat_schedule = {
    # Trial ends and upcoming starts that have come due
    "sweep-subscriptions": {
        "task": "ebedmas.tasks.subscription_tasks.sweep_subscriptions",
        "schedule": settings.SUBSCRIPTION_SWEEP_MINUTES * 60.0,
    },
}
