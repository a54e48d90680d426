"""
Submission Client: sends a visitor's feedback to the ingestion endpoint.
========================================================================

One POST to {api_url}/api/feedback per submission, JSON body. No retry,
no backoff, no offline queue: a failed submission is reported back and the
visitor may submit again.

Local rules, checked before any network call:
* rating must be set and within 1-5 (FeedbackValidationError)
* only one request in flight per widget instance (SubmissionInFlightError)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from feedback_widget.config import settings
from feedback_widget.core.errors import (
    FeedbackValidationError,
    SubmissionInFlightError,
    SubmissionNetworkError,
)
from feedback_widget.core.errors.registry import log_widget_error
from feedback_widget.models.feedback import (
    MAX_RATING,
    MIN_RATING,
    FeedbackMetadata,
    FeedbackSubmission,
)
from feedback_widget.models.page import PageContext
from feedback_widget.models.widget_config import WidgetConfig
from feedback_widget.services.identity_service import SessionIdentity

logger = logging.getLogger(__name__)

FEEDBACK_PATH = "/api/feedback"


@dataclass(frozen=True)
class SubmitResult:
    success: bool
    status_code: int = 0
    error: Optional[str] = None
    error_code: Optional[str] = None


def validate_rating(rating) -> int:
    """Return the rating, or raise FeedbackValidationError."""
    if rating is None or rating == 0:
        raise FeedbackValidationError("FBW-VAL-001")
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise FeedbackValidationError("FBW-VAL-002", context={"rating": repr(rating)})
    return rating


class SubmissionClient:
    """Async HTTP client for the feedback ingestion endpoint."""

    def __init__(
        self,
        config_provider: Callable[[], WidgetConfig],
        identity: SessionIdentity,
        page: Optional[PageContext] = None,
        clock: Callable[[], float] = time.time,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config_provider = config_provider
        self._identity = identity
        self._page = page or PageContext()
        self._clock = clock
        self._timeout = settings.request_timeout_s if timeout is None else timeout
        self._transport = transport
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def can_submit(self, rating) -> bool:
        """Mirror of the submit button's enabled state."""
        if self._in_flight:
            return False
        try:
            validate_rating(rating)
        except FeedbackValidationError:
            return False
        return True

    def endpoint_url(self) -> str:
        return f"{str(self._config_provider().api_url).rstrip('/')}{FEEDBACK_PATH}"

    def build_submission(
        self,
        rating: int,
        comment: Optional[str] = "",
        email: Optional[str] = None,
    ) -> FeedbackSubmission:
        # hosts may hand over non-string form values
        email = str(email).strip() if email is not None else ""
        return FeedbackSubmission(
            rating=rating,
            comment="" if comment is None else str(comment),
            email=email or None,
            metadata=FeedbackMetadata(
                url=self._page.url,
                user_agent=self._page.user_agent,
                timestamp=int(self._clock() * 1000),
                referrer=self._page.referrer,
                session_id=self._identity.session_id,
                client_id=self._identity.client_id,
            ),
        )

    async def submit(
        self,
        rating,
        comment: Optional[str] = "",
        email: Optional[str] = None,
    ) -> SubmitResult:
        """POST one submission. Raises only for local rejections."""
        rating = validate_rating(rating)
        if self._in_flight:
            raise SubmissionInFlightError("FBW-SUB-001")

        submission = self.build_submission(rating, comment, email)
        self._in_flight = True
        try:
            return await self._post(submission)
        finally:
            self._in_flight = False

    async def _post(self, submission: FeedbackSubmission) -> SubmitResult:
        url = self.endpoint_url()
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(url, json=submission.to_payload())
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            err = SubmissionNetworkError("FBW-NET-002", detail=str(e), context={"url": url})
            log_widget_error(err, logger)
            return SubmitResult(success=False, error=err.safe_message, error_code=err.code)

        if 200 <= resp.status_code < 300:
            logger.info("Feedback submitted (status=%d, rating=%d)", resp.status_code, submission.rating)
            return SubmitResult(success=True, status_code=resp.status_code)

        err = SubmissionNetworkError(
            "FBW-NET-001",
            context={"url": url, "status_code": resp.status_code},
        )
        log_widget_error(err, logger)
        return SubmitResult(
            success=False,
            status_code=resp.status_code,
            error=err.safe_message,
            error_code=err.code,
        )
