"""
Auto-initialization from the embedding script tag.

    <script src="feedback-widget.js" data-auto-init
            data-api-url="https://feedback.example.com"
            data-probability="0.2" data-delay="15"
            data-company-name="Acme" data-position="bottom-left"
            data-primary-color="#ff5500" data-dark-mode="true"></script>

``data-delay`` is given in seconds and converted to milliseconds. Values are
parsed but not validated.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping, Optional

from bs4 import BeautifulSoup

from feedback_widget.host import HostPage
from feedback_widget.main import WidgetHandle, init

logger = logging.getLogger(__name__)

AUTO_INIT_ATTR = "data-auto-init"

# data attribute → config key, for plain string values
_STRING_ATTRS = {
    "data-api-url": "apiUrl",
    "data-company-name": "companyName",
    "data-company-logo": "companyLogo",
    "data-position": "position",
}


def script_attributes(html: str) -> Dict[str, str]:
    """Attributes of the first <script> tag in ``html`` (empty if none)."""
    soup = BeautifulSoup(html, "html.parser", multi_valued_attributes=None)
    tag = soup.find("script")
    if tag is None:
        return {}
    return {name: value if value is not None else "" for name, value in tag.attrs.items()}


def _parse_number(value: str) -> float:
    """float(), or NaN for garbage (the value is used as-is downstream)."""
    try:
        return float(value)
    except ValueError:
        return float("nan")


def config_from_attributes(attributes: Mapping[str, str]) -> Dict[str, Any]:
    """Translate data-* attributes into a partial widget config."""
    config: Dict[str, Any] = {}

    for attr, key in _STRING_ATTRS.items():
        if attributes.get(attr):
            config[key] = attributes[attr]

    if attributes.get("data-probability"):
        config["triggerProbability"] = _parse_number(attributes["data-probability"])
    if attributes.get("data-delay"):
        delay_s = _parse_number(attributes["data-delay"])
        config["triggerDelay"] = round(delay_s * 1000) if math.isfinite(delay_s) else delay_s

    theme: Dict[str, Any] = {}
    if attributes.get("data-primary-color"):
        theme["primaryColor"] = attributes["data-primary-color"]
    if attributes.get("data-dark-mode"):
        theme["darkMode"] = attributes["data-dark-mode"] == "true"
    if theme:
        config["theme"] = theme

    return config


def auto_init(
    attributes: Mapping[str, str],
    page: Optional[HostPage] = None,
) -> Optional[WidgetHandle]:
    """Initialize the widget if the script tag carries the auto-init marker."""
    if AUTO_INIT_ATTR not in attributes:
        return None
    config = config_from_attributes(attributes)
    logger.info("Auto-initializing feedback widget", extra={"keys": sorted(config)})
    return init(config, page=page)


def auto_init_from_html(html: str, page: Optional[HostPage] = None) -> Optional[WidgetHandle]:
    return auto_init(script_attributes(html), page=page)
