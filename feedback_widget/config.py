"""
Feedback Widget Configuration
=============================

PURPOSE:
    Pydantic-Settings based configuration for the feedback widget runtime.
    All settings can be overridden via environment variables
    (FEEDBACK_WIDGET_ prefix) or a local .env file.

    The values here seed the default WidgetConfig; hosts override them per
    widget through init() or the data-* attributes of the embedding tag.
"""

import logging
from typing import Optional

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

_DEFAULT_API_URL = "https://api.example.com"


class Settings(BaseSettings):
    """Runtime defaults for the embeddable widget."""

    app_name: str = "feedback-widget"

    # Ingestion endpoint base URL (POST {api_url}/api/feedback)
    api_url: str = _DEFAULT_API_URL

    # Activation policy
    trigger_probability: float = 0.1    # 10% of sessions
    trigger_delay_ms: int = 30_000      # 30 seconds after mount
    success_display_ms: int = 5_000     # success screen auto-reverts after 5s

    # Ingestion request
    request_timeout_s: float = 10.0

    # Storage keys (same keys the browser build used in local/sessionStorage)
    client_id_key: str = "feedback_client_id"
    submitted_key: str = "feedback_submitted"

    # Single mounting container per page
    container_id: str = "feedback-widget-root"

    # Optional JSON file backing the durable store. None keeps it in memory.
    durable_store_path: Optional[str] = None

    # Logging
    log_dir: str = "logs"
    log_level: str = "INFO"
    log_to_file: bool = False

    # Presentation defaults
    company_name: str = "Your Company"
    company_logo: str = ""
    position: str = "bottom-right"

    class Config:
        env_file = ".env"
        env_prefix = "FEEDBACK_WIDGET_"


settings = Settings()

if settings.api_url == _DEFAULT_API_URL:
    logger.debug(
        "FEEDBACK_WIDGET_API_URL not set, using placeholder %s. "
        "Pass apiUrl to init() or data-api-url on the script tag.",
        _DEFAULT_API_URL,
    )
