import json
import logging
from decimal import Decimal

import pytest

from app.core.exceptions import VersionConflict
from app.core.logging_config import LogContext, get_logger
from app.services.stock_ledger import apply_stock_delta


def test_lines_are_json_with_context(log_capture):
    logger = get_logger("tests")

    with LogContext.bind(request_id="req-1", actor_id=7):
        logger.info("hello", extra={"amount": Decimal("1.50")})

    payload = json.loads(log_capture.lines[-1])
    assert payload["message"] == "hello"
    assert payload["logger"] == "stockroom.tests"
    assert payload["request_id"] == "req-1"
    assert payload["actor_id"] == "7"
    assert payload["amount"] == "1.50"


def test_bind_restores_previous_values(log_capture):
    LogContext.set(request_id="outer")
    with LogContext.bind(request_id="inner"):
        assert LogContext.get_all()["request_id"] == "inner"
    assert LogContext.get_all()["request_id"] == "outer"


def test_exception_code_is_logged(log_capture):
    logger = get_logger("tests")
    try:
        raise VersionConflict(1, 0, 2)
    except VersionConflict:
        logger.exception("failed")

    payload = json.loads(log_capture.lines[-1])
    assert payload["exc_type"] == "VersionConflict"
    assert payload["exc_code"] == "VERSION_CONFLICT"
    assert "traceback" in payload


def test_stock_mutations_are_logged(log_capture, db, make_item, admin):
    item = make_item()

    apply_stock_delta(
        db, item_id=item.id, expected_version=0, delta=3, movement_type="INBOUND", reason="r", actor_id=admin.id
    )
    with pytest.raises(VersionConflict):
        apply_stock_delta(
            db, item_id=item.id, expected_version=0, delta=3, movement_type="INBOUND", reason="r", actor_id=admin.id
        )

    messages = [(record.getMessage(), record.levelno) for record in log_capture.records]
    assert ("stock_mutation_applied", logging.INFO) in messages
    assert ("stock_mutation_rejected", logging.INFO) in messages
    rejected = next(r for r in log_capture.records if r.getMessage() == "stock_mutation_rejected")
    assert rejected.error_code == "VERSION_CONFLICT"
