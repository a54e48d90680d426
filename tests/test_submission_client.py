"""
Tests for SubmissionClient: local validation, payload shape, status
interpretation, single in-flight request.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from feedback_widget.core.errors import (
    FeedbackValidationError,
    SubmissionInFlightError,
)
from feedback_widget.models.page import PageContext
from feedback_widget.models.widget_config import default_widget_config, resolve_config
from feedback_widget.services.identity_service import SessionIdentity
from feedback_widget.services.submission_client import SubmissionClient, validate_rating

IDENTITY = SessionIdentity(session_id="sess_abc", client_id="client_xyz")


def _client(transport=None, api_url="https://feedback.test", page=None):
    config = resolve_config(default_widget_config(), {"apiUrl": api_url})
    return SubmissionClient(
        config_provider=lambda: config,
        identity=IDENTITY,
        page=page or PageContext(url="https://shop.example.com/", user_agent="UA/1.0", referrer="https://ref/"),
        clock=lambda: 1_700_000_000.5,
        transport=transport,
    )


class TestValidateRating:
    @pytest.mark.parametrize("rating", [None, 0])
    def test_missing_rating(self, rating):
        with pytest.raises(FeedbackValidationError) as exc:
            validate_rating(rating)
        assert exc.value.code == "FBW-VAL-001"
        assert exc.value.safe_message == "Please select a rating"

    @pytest.mark.parametrize("rating", [6, -1, 2.5, "5", True])
    def test_out_of_range(self, rating):
        with pytest.raises(FeedbackValidationError) as exc:
            validate_rating(rating)
        assert exc.value.code == "FBW-VAL-002"

    @pytest.mark.parametrize("rating", [1, 3, 5])
    def test_valid(self, rating):
        assert validate_rating(rating) == rating


class TestSubmit:
    @pytest.mark.asyncio
    async def test_posts_payload(self, endpoint):
        client = _client(endpoint.transport)

        result = await client.submit(5, "Great checkout", "  me@example.com ")

        assert result.success is True
        assert result.status_code == 201
        assert len(endpoint.requests) == 1
        request = endpoint.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://feedback.test/api/feedback"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {
            "rating": 5,
            "comment": "Great checkout",
            "email": "me@example.com",
            "metadata": {
                "url": "https://shop.example.com/",
                "userAgent": "UA/1.0",
                "timestamp": 1_700_000_000_500,
                "referrer": "https://ref/",
                "sessionId": "sess_abc",
                "clientId": "client_xyz",
            },
        }

    @pytest.mark.asyncio
    async def test_blank_email_omitted(self, endpoint):
        await _client(endpoint.transport).submit(4, "", "   ")
        body = json.loads(endpoint.requests[0].content)
        assert "email" not in body
        assert body["comment"] == ""

    @pytest.mark.asyncio
    async def test_trailing_slash_in_api_url(self, endpoint):
        await _client(endpoint.transport, api_url="https://feedback.test/").submit(3)
        assert str(endpoint.requests[0].url) == "https://feedback.test/api/feedback"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 201, 202, 204])
    async def test_any_2xx_is_success(self, status):
        transport = httpx.MockTransport(lambda request: httpx.Response(status))
        result = await _client(transport).submit(5)
        assert result.success is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [301, 400, 404, 500, 503])
    async def test_non_2xx_is_failure(self, status):
        transport = httpx.MockTransport(lambda request: httpx.Response(status, text="nope"))
        client = _client(transport)

        result = await client.submit(5)

        assert result.success is False
        assert result.status_code == status
        assert result.error_code == "FBW-NET-001"
        assert result.error == "Failed to submit feedback. Please try again."
        assert client.in_flight is False

    @pytest.mark.asyncio
    async def test_transport_error_is_failure(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(httpx.MockTransport(refuse))
        result = await client.submit(2)

        assert result.success is False
        assert result.status_code == 0
        assert result.error_code == "FBW-NET-002"
        assert client.in_flight is False

    @pytest.mark.asyncio
    async def test_missing_rating_makes_no_request(self, endpoint):
        with pytest.raises(FeedbackValidationError):
            await _client(endpoint.transport).submit(None, "hello")
        assert endpoint.requests == []

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self):
        calls = []

        def fail(request):
            calls.append(request)
            return httpx.Response(500)

        await _client(httpx.MockTransport(fail)).submit(5)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_single_request_in_flight(self):
        release = asyncio.Event()
        calls = []

        async def slow(request):
            calls.append(request)
            await release.wait()
            return httpx.Response(200)

        client = _client(httpx.MockTransport(slow))
        first = asyncio.create_task(client.submit(5))
        await asyncio.sleep(0.01)

        assert client.in_flight is True
        assert client.can_submit(5) is False
        with pytest.raises(SubmissionInFlightError):
            await client.submit(4)

        release.set()
        result = await first

        assert result.success is True
        assert len(calls) == 1
        assert client.in_flight is False
        assert client.can_submit(5) is True

    @pytest.mark.asyncio
    async def test_uses_httpx_async_client(self):
        mock_resp = MagicMock()
        mock_resp.status_code = 200

        with patch("httpx.AsyncClient") as MockClient:
            mock_instance = AsyncMock()
            mock_instance.post = AsyncMock(return_value=mock_resp)
            mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
            mock_instance.__aexit__ = AsyncMock(return_value=False)
            MockClient.return_value = mock_instance

            result = await _client().submit(1, "meh")

        assert result.success is True
        mock_instance.post.assert_called_once()
        args, kwargs = mock_instance.post.call_args
        assert args[0] == "https://feedback.test/api/feedback"
        assert kwargs["json"]["rating"] == 1


class TestCanSubmit:
    def test_requires_rating(self):
        client = _client()
        assert client.can_submit(0) is False
        assert client.can_submit(None) is False
        assert client.can_submit(4) is True
