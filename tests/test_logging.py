"""Tests for structured logging helpers."""

import json
import logging

import pytest

from qrstyle.logging import AUDIT, JsonFormatter, audit, get_logger, trace


def test_get_logger_is_namespaced():
    assert get_logger("finder").name == "qrstyle.finder"


def test_audit_emits_event_with_context(caplog):
    caplog.set_level(AUDIT, logger="qrstyle")
    audit("unit.event", logger=get_logger("unit"), answer=42)
    record = next(r for r in caplog.records if getattr(r, "event", None) == "unit.event")
    assert record.levelno == AUDIT
    assert record.ctx == {"answer": 42}


def test_json_formatter_output(caplog):
    caplog.set_level(AUDIT, logger="qrstyle")
    audit("unit.json", logger=get_logger("unit"), size=10)
    record = next(r for r in caplog.records if getattr(r, "event", None) == "unit.json")
    entry = json.loads(JsonFormatter().format(record))
    assert entry["event"] == "unit.json"
    assert entry["level"] == "AUDIT"
    assert entry["ctx"] == {"size": 10}


def test_trace_logs_exit_and_errors(caplog):
    caplog.set_level(logging.DEBUG, logger="qrstyle")

    @trace(logger_name="unit")
    def double(x):
        return 2 * x

    @trace(logger_name="unit")
    def boom():
        raise ValueError("nope")

    assert double(4) == 8
    with pytest.raises(ValueError):
        boom()

    events = [getattr(r, "event", None) for r in caplog.records]
    assert any(e and e.endswith("double.enter") for e in events)
    assert any(e and e.endswith("double.done") for e in events)
    assert any(e and e.endswith("boom.error") for e in events)
