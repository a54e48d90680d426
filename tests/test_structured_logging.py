"""
Tests for structlog setup and identity binding.
"""

import json
import logging

import pytest
import structlog

from feedback_widget.core.errors import SubmissionNetworkError
from feedback_widget.core.errors.registry import log_widget_error
from feedback_widget.core.structured_logging import bind_identity, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    bind_identity(None, None)


def test_json_lines_written_to_file(tmp_path, restore_logging):
    setup_logging(log_dir=str(tmp_path), log_file="widget.jsonl", log_to_file=True)
    bind_identity("sess_abc", "client_xyz")

    logging.getLogger("feedback_widget.test").warning("rating_rejected")
    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = (tmp_path / "widget.jsonl").read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[-1])
    assert record["event"] == "rating_rejected"
    assert record["level"] == "warning"
    assert record["service"] == "feedback-widget"
    assert record["session_id"] == "sess_abc"
    assert record["client_id"] == "client_xyz"
    assert "ts" in record


def test_stderr_only_by_default(tmp_path, restore_logging):
    setup_logging(log_dir=str(tmp_path / "logs"))

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert not (tmp_path / "logs").exists()


def test_log_level_string_accepted(restore_logging):
    setup_logging(log_level="WARNING")
    assert logging.getLogger().level == logging.WARNING


def test_error_fields_carried_into_json(tmp_path, restore_logging):
    setup_logging(log_dir=str(tmp_path), log_file="widget.jsonl", log_to_file=True)

    err = SubmissionNetworkError(
        "FBW-NET-001", context={"url": "https://feedback.test/api/feedback", "status_code": 500}
    )
    log_widget_error(err, logging.getLogger("feedback_widget.test"))
    for handler in logging.getLogger().handlers:
        handler.flush()

    record = json.loads((tmp_path / "widget.jsonl").read_text(encoding="utf-8").splitlines()[-1])
    assert record["event"] == "Ingestion endpoint rejected feedback"
    assert record["level"] == "warning"
    assert record["error.code"] == "FBW-NET-001"
    assert record["error.kind"] == "SubmissionNetworkError"
    assert record["error.message"] == "status=500 url=https://feedback.test/api/feedback"
    assert record["error.ctx.status_code"] == 500
