from __future__ import annotations
import asyncio
import logging
from typing import Optional
from demogen.core.config import settings
from demogen.core.errors import NotFoundError
from demogen.core.logging import demo_logger
from demogen.schemas.demos import GenerationOptions
from demogen.tasks.celery_app import celery_app

log = logging.getLogger(__name__)


def enqueue_demo_pipeline(demo_id: str, options: GenerationOptions) -> None:
    run_demo_pipeline.delay(demo_id, options.model_dump())
    demo_logger(log, demo_id, "pending").info("Pipeline queued on %s", settings.celery_queue)


@celery_app.task(name="run_demo_pipeline")
def run_demo_pipeline(demo_id: str, options: Optional[dict] = None) -> str:
    """Run the pipeline for a stored demo in a worker process.

    Workers only see demos created by the API when both share the SQL store.
    Returns the final status, or "missing" when the demo is not in the store.
    """
    from demogen.core.engine import PipelineOrchestrator

    dlog = demo_logger(log, demo_id)
    orchestrator = PipelineOrchestrator.from_settings(settings, scheduler=lambda *_: None)
    dlog.info("Starting pipeline")
    try:
        demo = asyncio.run(orchestrator.run(demo_id, GenerationOptions.model_validate(options or {})))
    except NotFoundError:
        dlog.error("Demo not found in store %s; is the API using the same database?", settings.store_backend)
        return "missing"
    dlog.info("Pipeline finished", extra={"stage": demo.status.value})
    return demo.status.value
