"""
Error code system.

WidgetError is the base exception for all structured widget errors.
Raise it (or a subclass) with an error code from the registry; the widget
turns it into an inline, user-visible message instead of letting it reach
the host page.

Usage:
    from feedback_widget.core.errors import FeedbackValidationError
    raise FeedbackValidationError("FBW-VAL-001")
"""

from __future__ import annotations

import re

CODE_PATTERN = re.compile(r"^FBW-[A-Z]{2,6}-\d{3}$")


class WidgetError(Exception):
    """Structured widget error tied to the error registry.

    Args:
        code: Registry error code, e.g. "FBW-NET-001".
        detail: Internal-only detail message (never shown to visitors).
        context: Arbitrary key-value context for structured logging.
    """

    def __init__(
        self,
        code: str,
        detail: str | None = None,
        context: dict | None = None,
    ) -> None:
        if not CODE_PATTERN.match(code):
            raise ValueError(f"Invalid error code format: {code!r}")
        self.code = code
        self.detail = detail
        self.context = context or {}
        super().__init__(f"{code}: {detail}" if detail else code)

    @property
    def safe_message(self) -> str:
        """Visitor-facing message from the registry."""
        from feedback_widget.core.errors.registry import safe_message

        return safe_message(self.code)


class FeedbackValidationError(WidgetError):
    """Submission blocked client-side (no rating, rating out of range)."""


class SubmissionInFlightError(WidgetError):
    """A submission for this widget instance is already outstanding."""


class SubmissionNetworkError(WidgetError):
    """The ingestion endpoint failed or returned a non-2xx status."""
