"""
Tests for the widget error codes and registry.yaml.
"""

import logging
from unittest.mock import MagicMock

import pytest

from feedback_widget.core.errors import (
    FeedbackValidationError,
    SubmissionNetworkError,
    WidgetError,
)
from feedback_widget.core.errors.registry import (
    FALLBACK_MESSAGE,
    ErrorRegistry,
    RegistryValidationError,
    error_registry,
    log_widget_error,
    safe_message,
)


class TestWidgetError:
    def test_invalid_code_rejected(self):
        with pytest.raises(ValueError):
            WidgetError("VAL-001")

    def test_message_includes_detail(self):
        err = SubmissionNetworkError("FBW-NET-001", detail="status=500", context={"status_code": 500})
        assert str(err) == "FBW-NET-001: status=500"
        assert err.context == {"status_code": 500}

    def test_safe_message_from_registry(self):
        assert FeedbackValidationError("FBW-VAL-001").safe_message == "Please select a rating"


class TestRegistry:
    def test_all_codes_loaded(self):
        assert set(error_registry.all_codes()) == {
            "FBW-VAL-001",
            "FBW-VAL-002",
            "FBW-SUB-001",
            "FBW-NET-001",
            "FBW-NET-002",
        }

    def test_unknown_code_falls_back(self):
        assert safe_message("FBW-SYS-999") == FALLBACK_MESSAGE

    def test_lookup_unknown_raises(self):
        with pytest.raises(KeyError):
            error_registry.lookup("FBW-SYS-999")

    def test_missing_fields_rejected(self, tmp_path):
        path = tmp_path / "registry.yaml"
        path.write_text("errors:\n  - code: FBW-NET-001\n")
        with pytest.raises(RegistryValidationError):
            ErrorRegistry().load(str(path))

    def test_unknown_severity_rejected(self, tmp_path):
        path = tmp_path / "registry.yaml"
        path.write_text(
            "errors:\n"
            "  - code: FBW-NET-001\n"
            "    title: t\n"
            "    severity: LOUD\n"
            "    safe_message: m\n"
        )
        with pytest.raises(RegistryValidationError):
            ErrorRegistry().load(str(path))

    def test_duplicate_code_rejected(self, tmp_path):
        entry = "  - {code: FBW-NET-001, title: t, severity: WARN, safe_message: m}\n"
        path = tmp_path / "registry.yaml"
        path.write_text("errors:\n" + entry + entry)
        with pytest.raises(RegistryValidationError):
            ErrorRegistry().load(str(path))


class TestDetailTemplate:
    def test_rendered_from_context(self):
        entry = error_registry.lookup("FBW-VAL-002")
        assert entry.render_detail({"rating": "7"}) == "rating=7"

    def test_missing_context_key(self):
        entry = error_registry.lookup("FBW-NET-001")
        assert entry.render_detail({"status_code": 500}) is None

    def test_no_template(self):
        assert error_registry.lookup("FBW-VAL-001").render_detail({"rating": 0}) is None

    def test_logged_detail_uses_template(self):
        log = MagicMock()
        log_widget_error(FeedbackValidationError("FBW-VAL-002", context={"rating": "9"}), log)

        level, event = log.log.call_args.args
        extra = log.log.call_args.kwargs["extra"]
        assert level == logging.WARNING
        assert event == "Rating out of range"
        assert extra["error.message"] == "rating=9"
        assert extra["error.ctx.rating"] == "9"

    def test_explicit_detail_wins(self):
        log = MagicMock()
        log_widget_error(SubmissionNetworkError("FBW-NET-002", detail="refused", context={"url": "u"}), log)
        assert log.log.call_args.kwargs["extra"]["error.message"] == "refused"

    def test_unregistered_code_logged_as_error(self):
        log = MagicMock()
        log_widget_error(WidgetError("FBW-SYS-999"), log)
        level, event = log.log.call_args.args
        assert (level, event) == (logging.ERROR, "unregistered_error_code")
