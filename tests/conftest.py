"""
Pytest configuration for feedback widget tests.
Pins settings so tests don't depend on the developer's environment.
"""

import os

# Must be set before any feedback_widget imports
os.environ["FEEDBACK_WIDGET_API_URL"] = "https://feedback.test"
os.environ["FEEDBACK_WIDGET_TRIGGER_PROBABILITY"] = "0.1"
os.environ["FEEDBACK_WIDGET_TRIGGER_DELAY_MS"] = "30000"
os.environ["FEEDBACK_WIDGET_SUCCESS_DISPLAY_MS"] = "5000"
os.environ.pop("FEEDBACK_WIDGET_DURABLE_STORE_PATH", None)

import random

import httpx
import pytest

from feedback_widget.core.errors.registry import error_registry
from feedback_widget.host import HostPage
from feedback_widget.models.page import PageContext
from feedback_widget.services.storage import MemoryStore

# Load error registry so widget errors carry their visitor-facing messages
if len(error_registry) == 0:
    error_registry.load()


class RecordingEndpoint:
    """Fake ingestion endpoint: records requests, answers with a fixed status."""

    def __init__(self, status_code: int = 201):
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def endpoint():
    return RecordingEndpoint()


@pytest.fixture
def page_context():
    return PageContext(
        url="https://shop.example.com/checkout",
        user_agent="Mozilla/5.0 (X11; Linux x86_64) TestBrowser/1.0",
        referrer="https://search.example.com/",
    )


@pytest.fixture
def durable_store():
    return MemoryStore()


@pytest.fixture
def make_page(page_context, durable_store, endpoint):
    """Factory for host pages sharing one durable store (same browser)."""

    def _make(seed: int = 7, transport=None) -> HostPage:
        return HostPage(
            context=page_context,
            durable_store=durable_store,
            rng=random.Random(seed),
            transport=transport or endpoint.transport,
        )

    return _make
