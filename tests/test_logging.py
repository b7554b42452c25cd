import logging
from demogen.core.logging import LOG_FORMAT, ContextFormatter, demo_logger


def _record(**extra):
    record = logging.LogRecord("demogen.test", logging.INFO, __file__, 1, "hello", None, None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_formatter_fills_missing_context():
    line = ContextFormatter(LOG_FORMAT).format(_record())
    assert "[demo_id=- stage=-] - hello" in line


def test_formatter_keeps_given_context():
    line = ContextFormatter(LOG_FORMAT).format(_record(demo_id="demo_1", stage="processing"))
    assert "[demo_id=demo_1 stage=processing]" in line


def test_demo_logger_binds_id_and_accepts_stage(caplog):
    dlog = demo_logger(logging.getLogger("demogen.test"), "demo_42")
    with caplog.at_level(logging.INFO, logger="demogen.test"):
        dlog.info("started")
        dlog.info("done", extra={"stage": "completed"})
    first, second = caplog.records
    assert first.demo_id == "demo_42"
    assert not hasattr(first, "stage")
    assert (second.demo_id, second.stage) == ("demo_42", "completed")
