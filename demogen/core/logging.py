import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [demo_id=%(demo_id)s stage=%(stage)s] - %(message)s"
CONTEXT_FIELDS = ("demo_id", "stage")


class ContextFormatter(logging.Formatter):
    """Formatter for records that may or may not carry demo_id and stage."""
    def format(self, record):
        for name in CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "-")
        return super().format(record)


class DemoLogger(logging.LoggerAdapter):
    """Binds one demo_id to every record; callers may still pass a stage."""
    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def demo_logger(logger: logging.Logger, demo_id: str, stage: Optional[str] = None) -> DemoLogger:
    extra = {"demo_id": demo_id}
    if stage:
        extra["stage"] = stage
    return DemoLogger(logger, extra)


def configure_logging(level: str = "INFO") -> None:
    """Route root logging to stdout. Safe to call again, e.g. from a Celery worker."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(LOG_FORMAT))
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)
