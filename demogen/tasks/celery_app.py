from celery import Celery
from celery.signals import setup_logging
from demogen.core.config import settings
from demogen.core.logging import configure_logging

celery_app = Celery(
    "demogen",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["demogen.tasks.demos"],
)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_routes={"run_demo_pipeline": {"queue": settings.celery_queue}},
    result_expires=3600,
    broker_connection_retry_on_startup=True,
)


@setup_logging.connect
def _worker_logging(**kwargs):
    configure_logging(settings.log_level)
