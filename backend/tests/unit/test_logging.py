# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for structured logging
"""

import json
import logging

from flowbridge.core.logging import JSONFormatter, TextFormatter, get_logger, log_event, record_context


def make_record(message="Executing webhook", **extra):
    record = logging.LogRecord("flowbridge.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Test JSON and text output"""

    def test_record_context_only_has_extra_fields(self):
        record = make_record(workflow_id="wf1")

        assert record_context(record) == {"workflow_id": "wf1"}

    def test_json_promotes_context_fields(self):
        line = JSONFormatter().format(make_record(workflow_id="wf1", duration_ms=12))
        data = json.loads(line)

        assert data["message"] == "Executing webhook"
        assert data["level"] == "INFO"
        assert data["logger"] == "flowbridge.test"
        assert data["workflow_id"] == "wf1"
        assert data["duration_ms"] == 12
        assert "msg" not in data

    def test_text_appends_context(self):
        line = TextFormatter().format(make_record(execution_id="42"))

        assert line.endswith("Executing webhook | execution_id=42")

    def test_text_without_context(self):
        line = TextFormatter().format(make_record())

        assert line.endswith("Executing webhook")


class TestGetLogger:
    """Test get_logger and log_event"""

    def test_explicit_level_and_format(self):
        logger = get_logger("flowbridge.test.explicit", log_level="debug", log_format="text")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, TextFormatter)

    def test_repeated_calls_do_not_duplicate_handlers(self):
        get_logger("flowbridge.test.repeat", log_level="INFO", log_format="json")
        logger = get_logger("flowbridge.test.repeat", log_level="INFO", log_format="json")

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_log_event_passes_fields(self):
        logger = logging.getLogger("flowbridge.test.event")
        records = []
        handler = logging.Handler()
        handler.emit = records.append
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

        log_event(logger, "workflow_executed", workflow_id="wf1", duration_ms=5)

        assert records[0].getMessage() == "workflow_executed"
        assert record_context(records[0]) == {"workflow_id": "wf1", "duration_ms": 5}
