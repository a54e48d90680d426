"""
Page context: what the hosting page knows about the current visit.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PageContext:
    url: str = ""
    user_agent: str = ""
    referrer: str = ""
