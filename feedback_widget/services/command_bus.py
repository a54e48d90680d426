"""
CommandBus: remote control of the widget by its hosting page.
==============================================================

The page publishes three commands on a page-wide message channel:

    feedback-widget:open     no payload, force the form open
    feedback-widget:close    no payload, collapse to the launcher button
    feedback-widget:config   payload = partial config, merged into the active one

The channel is injected (MessageChannel protocol). InProcessChannel is the
in-process publish/subscribe implementation used outside a browser.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)

OPEN_TOPIC = "feedback-widget:open"
CLOSE_TOPIC = "feedback-widget:close"
CONFIG_TOPIC = "feedback-widget:config"

Handler = Callable[[Any], None]
Unsubscribe = Callable[[], None]


class MessageChannel(Protocol):
    def subscribe(self, topic: str, handler: Handler) -> Unsubscribe: ...

    def publish(self, topic: str, payload: Any = None) -> None: ...


class InProcessChannel:
    """Synchronous publish/subscribe channel, one per host page.

    Handlers run in subscription order inside publish(). A failing handler is
    logged and skipped; it never reaches the publisher or other handlers.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, topic: str, handler: Handler) -> Unsubscribe:
        self._handlers.setdefault(topic, []).append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(topic, [])
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                self._handlers.pop(topic, None)

        return _unsubscribe

    def publish(self, topic: str, payload: Any = None) -> None:
        for handler in list(self._handlers.get(topic, [])):
            try:
                handler(payload)
            except Exception:
                logger.exception("Channel handler failed for %s", topic)

    def subscriber_count(self, topic: Optional[str] = None) -> int:
        if topic is not None:
            return len(self._handlers.get(topic, []))
        return sum(len(h) for h in self._handlers.values())


class CommandBus:
    """Binds one widget's command handlers to the page channel."""

    def __init__(
        self,
        channel: MessageChannel,
        on_open: Callable[[], None],
        on_close: Callable[[], None],
        on_config: Callable[[Mapping[str, Any]], None],
    ):
        self._channel = channel
        self._on_open = on_open
        self._on_close = on_close
        self._on_config = on_config
        self._unsubscribers: List[Unsubscribe] = []

    @property
    def attached(self) -> bool:
        return bool(self._unsubscribers)

    def _handle_open(self, _payload: Any) -> None:
        self._on_open()

    def _handle_close(self, _payload: Any) -> None:
        self._on_close()

    def _handle_config(self, payload: Any) -> None:
        if not isinstance(payload, Mapping):
            logger.warning("Ignoring config update with non-mapping payload: %r", type(payload).__name__)
            return
        self._on_config(payload)

    def attach(self) -> None:
        """Subscribe to all three topics. Calling again is a no-op."""
        if self.attached:
            return
        self._unsubscribers = [
            self._channel.subscribe(OPEN_TOPIC, self._handle_open),
            self._channel.subscribe(CLOSE_TOPIC, self._handle_close),
            self._channel.subscribe(CONFIG_TOPIC, self._handle_config),
        ]
        logger.debug("Command bus attached")

    def detach(self) -> None:
        """Release every subscription. Safe to call more than once."""
        while self._unsubscribers:
            self._unsubscribers.pop()()
        logger.debug("Command bus detached")


def publish_open(channel: MessageChannel) -> None:
    channel.publish(OPEN_TOPIC)


def publish_close(channel: MessageChannel) -> None:
    channel.publish(CLOSE_TOPIC)


def publish_config(channel: MessageChannel, partial_config: Mapping[str, Any]) -> None:
    channel.publish(CONFIG_TOPIC, dict(partial_config))
