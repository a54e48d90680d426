"""
HostPage: the embedding page as seen by the widget.
====================================================

Owns everything a browser would provide ambiently:

* durable store     (localStorage: survives visits)
* session store     (sessionStorage: one visit)
* message channel   (page-wide command events)
* page context      (URL, user agent, referrer)
* mounting containers, keyed by element id

``unload()`` tears down every widget on the page. ``next_visit()`` models a
reload: same durable store, fresh session store and channel.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional

import httpx

from feedback_widget.config import settings
from feedback_widget.models.page import PageContext
from feedback_widget.services.command_bus import InProcessChannel, MessageChannel
from feedback_widget.services.storage import JsonFileStore, KeyValueStore, MemoryStore

if TYPE_CHECKING:
    from feedback_widget.widget import FeedbackWidget

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """A mounting point. Holds at most one widget."""
    id: str
    widget: Optional["FeedbackWidget"] = None

    def render(self, widget: "FeedbackWidget") -> None:
        """Mount ``widget`` here, replacing any widget already rendered."""
        if self.widget is not None and self.widget is not widget:
            logger.info("Replacing widget in container %s", self.id)
            self.widget.unmount()
        self.widget = widget
        widget.mount()

    def clear(self) -> None:
        if self.widget is not None:
            self.widget.unmount()
            self.widget = None


def _default_durable_store() -> KeyValueStore:
    if settings.durable_store_path:
        return JsonFileStore(settings.durable_store_path)
    return MemoryStore()


class HostPage:
    def __init__(
        self,
        context: Optional[PageContext] = None,
        durable_store: Optional[KeyValueStore] = None,
        session_store: Optional[KeyValueStore] = None,
        channel: Optional[MessageChannel] = None,
        rng: Optional[random.Random] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.context = context or PageContext()
        self.durable_store = durable_store if durable_store is not None else _default_durable_store()
        self.session_store = session_store if session_store is not None else MemoryStore()
        self.channel = channel if channel is not None else InProcessChannel()
        self.rng = rng
        self.transport = transport
        self._containers: Dict[str, Container] = {}

    @property
    def containers(self) -> Dict[str, Container]:
        return dict(self._containers)

    def get_container(self, container_id: str) -> Optional[Container]:
        return self._containers.get(container_id)

    def get_or_create_container(self, container_id: Optional[str] = None) -> Container:
        container_id = container_id or settings.container_id
        container = self._containers.get(container_id)
        if container is None:
            container = Container(id=container_id)
            self._containers[container_id] = container
            logger.debug("Created container %s", container_id)
        return container

    def unload(self) -> None:
        """Page is going away: clear timers and subscriptions of every widget."""
        for container in self._containers.values():
            container.clear()
        logger.info("Host page unloaded")

    def next_visit(self, context: Optional[PageContext] = None) -> "HostPage":
        """A reload of this page in the same browser, after unloading this one."""
        self.unload()
        return HostPage(
            context=context or self.context,
            durable_store=self.durable_store,
            rng=self.rng,
            transport=self.transport,
        )
