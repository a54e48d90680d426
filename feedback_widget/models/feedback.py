"""
Feedback Submission Model
=========================

The JSON body POSTed to the ingestion endpoint:

    {"rating": 5, "comment": "", "email": "a@b.c",
     "metadata": {"url", "userAgent", "timestamp", "referrer",
                  "sessionId", "clientId"}}

``email`` is omitted from the body when the visitor left it blank.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

MIN_RATING = 1
MAX_RATING = 5


class FeedbackMetadata(BaseModel):
    """Context attached to every submission."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = ""
    user_agent: str = Field(default="", alias="userAgent")
    timestamp: int  # epoch milliseconds
    referrer: str = ""
    session_id: str = Field(alias="sessionId")
    client_id: str = Field(alias="clientId")


class FeedbackSubmission(BaseModel):
    """A single rating with optional comment/email."""

    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    comment: str = ""
    email: Optional[str] = None
    metadata: FeedbackMetadata

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
