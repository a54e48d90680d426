"""
Widget initialization and the control handle returned to the host.

    handle = init({"apiUrl": "https://feedback.example.com", "triggerProbability": 0.25})
    handle.open()
    handle.set_config({"theme": {"darkMode": True}})
    handle.close()

init() must be called from inside the host's running event loop.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from feedback_widget.host import HostPage
from feedback_widget.models.widget_config import default_widget_config, resolve_config
from feedback_widget.services.command_bus import (
    MessageChannel,
    publish_close,
    publish_config,
    publish_open,
)
from feedback_widget.widget import FeedbackWidget

logger = logging.getLogger(__name__)


class WidgetHandle:
    """Public API handed back to the embedding page.

    Each method only emits the matching command on the page channel; the
    widget reacts through its command bus.
    """

    def __init__(self, channel: MessageChannel, widget: FeedbackWidget):
        self._channel = channel
        self._widget = widget

    @property
    def widget(self) -> FeedbackWidget:
        return self._widget

    def open(self) -> None:
        publish_open(self._channel)

    def close(self) -> None:
        publish_close(self._channel)

    def set_config(self, partial_config: Mapping[str, Any]) -> None:
        publish_config(self._channel, partial_config)


# Module-level singleton
_default_page: Optional[HostPage] = None


def get_default_page() -> HostPage:
    global _default_page
    if _default_page is None:
        _default_page = HostPage()
    return _default_page


def init(
    user_config: Optional[Mapping[str, Any]] = None,
    page: Optional[HostPage] = None,
    success_display_ms: Optional[int] = None,
) -> WidgetHandle:
    """Create the widget, render it into the page's container and return its handle.

    The container is created once per page and reused; a widget already
    rendered there is unmounted first.
    """
    page = page or get_default_page()
    config = resolve_config(default_widget_config(), user_config or {})

    widget = FeedbackWidget(
        config,
        channel=page.channel,
        session_store=page.session_store,
        durable_store=page.durable_store,
        page=page.context,
        rng=page.rng,
        transport=page.transport,
        success_display_ms=success_display_ms,
    )
    container = page.get_or_create_container()
    container.render(widget)
    logger.info("Feedback widget initialized in #%s", container.id)
    return WidgetHandle(page.channel, widget)
