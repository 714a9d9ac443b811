import json
import logging

from orders.logging_config import configure_logging
from orders.logging_filters import RequestIdFilter
from orders.middleware import REQUEST_ID_CTX


def _record():
    return logging.LogRecord("orders.test", logging.INFO, __file__, 1, "order created", None, None)


def test_filter_uses_placeholder_outside_requests():
    record = _record()
    assert RequestIdFilter().filter(record) is True
    assert record.request_id == "-"


def test_filter_reads_context_var():
    token = REQUEST_ID_CTX.set("abc")
    try:
        record = _record()
        RequestIdFilter().filter(record)
    finally:
        REQUEST_ID_CTX.reset(token)
    assert record.request_id == "abc"


def test_configure_logging_emits_json_once():
    logger = configure_logging("DEBUG")
    configure_logging("INFO")
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO

    handler = logger.handlers[0]
    record = _record()
    handler.filter(record)
    body = json.loads(handler.format(record))
    assert body["message"] == "order created"
    assert body["request_id"] == "-"
    assert body["levelname"] == "INFO"
