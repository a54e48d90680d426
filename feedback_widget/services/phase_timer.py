"""
PhaseTimer: the single cancellable timer of a widget instance.

Either the activation (trigger) timer or the success-display timer is alive,
never both. Arming a new phase cancels whatever was pending.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Union

from feedback_widget.models.state import TimerPhase

logger = logging.getLogger(__name__)

_Handle = Union[asyncio.Handle, asyncio.TimerHandle]


class PhaseTimer:
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._handle: Optional[_Handle] = None
        self._phase: Optional[TimerPhase] = None

    @property
    def phase(self) -> Optional[TimerPhase]:
        """Phase of the pending timer, or None when nothing is pending."""
        return self._phase

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def arm(self, phase: TimerPhase, delay_ms: float, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` after ``delay_ms``; cancels any pending timer.

        A non-positive or NaN delay runs the callback on the next loop iteration.
        """
        self.cancel()
        loop = self._get_loop()

        def _fire() -> None:
            # Cleared before the callback so it may re-arm
            self._handle = None
            self._phase = None
            callback()

        if not delay_ms > 0:
            self._handle = loop.call_soon(_fire)
        else:
            self._handle = loop.call_later(delay_ms / 1000.0, _fire)
        self._phase = phase
        logger.debug("phase_timer_armed", extra={"phase": phase.value, "delay_ms": delay_ms})

    def cancel(self, phase: Optional[TimerPhase] = None) -> bool:
        """Cancel the pending timer (only if it belongs to ``phase`` when given)."""
        if self._handle is None:
            return False
        if phase is not None and self._phase != phase:
            return False
        self._handle.cancel()
        logger.debug("phase_timer_cancelled", extra={"phase": self._phase.value if self._phase else None})
        self._handle = None
        self._phase = None
        return True
