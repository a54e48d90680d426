"""
TriggerScheduler: probabilistic, delayed first activation of the widget.
=========================================================================

At mount:
1. session already submitted → stay hidden, no draw
2. draw once from the injected random source
3. draw < trigger_probability → arm the trigger timer for trigger_delay ms
4. otherwise stay hidden for the rest of the session (no re-draw)
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional

from feedback_widget.config import settings
from feedback_widget.models.state import TimerPhase
from feedback_widget.models.widget_config import WidgetConfig
from feedback_widget.services.phase_timer import PhaseTimer
from feedback_widget.services.storage import KeyValueStore

logger = logging.getLogger(__name__)


class TriggerScheduler:
    def __init__(
        self,
        session_store: KeyValueStore,
        rng: Optional[random.Random] = None,
        submitted_key: Optional[str] = None,
    ):
        self._session_store = session_store
        self._rng = rng or random.Random()
        self._submitted_key = submitted_key or settings.submitted_key
        self._draw: Optional[float] = None
        self._armed = False

    @property
    def has_drawn(self) -> bool:
        return self._draw is not None

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def last_draw(self) -> Optional[float]:
        return self._draw

    def session_submitted(self) -> bool:
        return bool(self._session_store.get(self._submitted_key))

    def start(
        self,
        config: WidgetConfig,
        timer: PhaseTimer,
        on_fire: Callable[[], None],
    ) -> bool:
        """Decide whether to surface the widget; returns True if a timer was armed."""
        if self.has_drawn:
            logger.debug("Trigger already evaluated this session, not re-drawing")
            return False

        if self.session_submitted():
            logger.info("Feedback already submitted this session, trigger disabled")
            return False

        self._draw = self._rng.random()
        if not self._draw < config.trigger_probability:
            logger.info(
                "Trigger not selected (draw=%.3f, probability=%s)",
                self._draw, config.trigger_probability,
            )
            return False

        timer.arm(TimerPhase.TRIGGER, config.trigger_delay, on_fire)
        self._armed = True
        logger.info(
            "Trigger armed (draw=%.3f, probability=%s, delay_ms=%s)",
            self._draw, config.trigger_probability, config.trigger_delay,
        )
        return True
