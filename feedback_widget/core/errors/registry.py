"""
Error registry: loads and validates registry.yaml.

Each entry carries what the widget needs at runtime: the title used as the
log event, the severity it is logged at, the visitor-facing message, and an
optional ``detail_template`` rendered from the error's context when the
raise site gave no detail of its own.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

import yaml

from feedback_widget.core.errors import CODE_PATTERN

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {"code", "title", "severity", "safe_message"}

# registry severity → logging level
SEVERITY_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

FALLBACK_MESSAGE = "Something went wrong. Please try again."


@dataclass(frozen=True)
class ErrorEntry:
    code: str
    title: str
    severity: str
    safe_message: str
    detail_template: Optional[str] = None

    @property
    def level(self) -> int:
        return SEVERITY_LEVELS[self.severity]

    def render_detail(self, context: dict) -> Optional[str]:
        """Fill ``detail_template`` from ``context``; None if it can't be filled."""
        if not self.detail_template:
            return None
        try:
            return self.detail_template.format_map(context)
        except (KeyError, IndexError, ValueError):
            logger.debug("detail_template_unfilled", extra={"error.code": self.code})
            return None


class RegistryValidationError(Exception):
    """Raised when registry.yaml has structural errors."""


class ErrorRegistry:
    """Loads, validates, and provides lookup for error codes."""

    def __init__(self) -> None:
        self._entries: Dict[str, ErrorEntry] = {}

    def load(self, path: str | None = None) -> None:
        if path is None:
            path = os.path.join(os.path.dirname(__file__), "registry.yaml")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        raw_entries = data.get("errors", [])
        if not isinstance(raw_entries, list):
            raise RegistryValidationError("'errors' must be a list")

        entries: Dict[str, ErrorEntry] = {}
        for idx, raw in enumerate(raw_entries):
            missing = REQUIRED_FIELDS - set(raw)
            if missing:
                raise RegistryValidationError(
                    f"Entry {idx} ({raw.get('code', '?')}): missing fields {sorted(missing)}"
                )

            code = raw["code"]
            if not CODE_PATTERN.match(code):
                raise RegistryValidationError(f"Invalid code format: {code!r}")
            if code in entries:
                raise RegistryValidationError(f"Duplicate code: {code}")
            if raw["severity"] not in SEVERITY_LEVELS:
                raise RegistryValidationError(f"{code}: unknown severity {raw['severity']!r}")

            entries[code] = ErrorEntry(
                code=code,
                title=raw["title"],
                severity=raw["severity"],
                safe_message=raw["safe_message"],
                detail_template=raw.get("detail_template"),
            )

        self._entries = entries
        logger.info("error_registry_loaded", extra={"count": len(entries)})

    def get(self, code: str) -> ErrorEntry | None:
        return self._entries.get(code)

    def lookup(self, code: str) -> ErrorEntry:
        """Lookup by code, raising KeyError if not found."""
        entry = self._entries.get(code)
        if entry is None:
            raise KeyError(f"Unknown error code: {code!r}")
        return entry

    def all_codes(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


# Module-level singleton
error_registry = ErrorRegistry()


def _ensure_loaded() -> None:
    if len(error_registry) == 0:
        error_registry.load()


def safe_message(code: str) -> str:
    """Visitor-facing message for ``code``, loading the registry on first use."""
    _ensure_loaded()
    entry = error_registry.get(code)
    if entry is None:
        logger.error("unregistered_error_code", extra={"error.code": code})
        return FALLBACK_MESSAGE
    return entry.safe_message


def log_widget_error(exc, log: logging.Logger | None = None) -> None:
    """Log a WidgetError at the severity its registry entry declares."""
    log = log or logger
    _ensure_loaded()
    entry = error_registry.get(exc.code)
    if entry is None:
        level, event, detail = logging.ERROR, "unregistered_error_code", exc.detail
    else:
        level, event = entry.level, entry.title
        detail = exc.detail or entry.render_detail(exc.context)

    log.log(
        level,
        event,
        extra={
            "error.code": exc.code,
            "error.kind": type(exc).__name__,
            "error.message": detail,
            **{f"error.ctx.{k}": v for k, v in exc.context.items()},
        },
    )
