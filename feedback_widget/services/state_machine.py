"""
WidgetStateMachine: visibility and UI phase of one widget instance.
====================================================================

    hidden  --trigger_fired-->     button
    hidden  --open-->              form      (bypasses the trigger)
    button  --click/open-->        form
    form    --close-->             button    (in-progress input discarded)
    form    --submit_succeeded-->  success   (session-submitted flag set)
    form    --submit_failed-->     form
    success --success_elapsed-->   button    (auto-revert after 5s)
    success --close-->             button
    any     --config_update-->     unchanged (config replaced)

open/close are commands: they force form/button from every state. Every
other event that has no row above leaves the state unchanged. There is no
terminal state.

Only one phase timer is alive at a time. Entering success arms the
success-display timer; entering any other state cancels whatever timer is
pending.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from feedback_widget.config import settings
from feedback_widget.models.state import TimerPhase, WidgetEvent, WidgetState
from feedback_widget.models.widget_config import WidgetConfig, resolve_config
from feedback_widget.services.phase_timer import PhaseTimer
from feedback_widget.services.storage import KeyValueStore
from feedback_widget.services.trigger_scheduler import TriggerScheduler

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[Tuple[WidgetState, WidgetEvent], WidgetState] = {
    (WidgetState.HIDDEN, WidgetEvent.TRIGGER_FIRED): WidgetState.BUTTON,
    (WidgetState.BUTTON, WidgetEvent.CLICK): WidgetState.FORM,
    (WidgetState.FORM, WidgetEvent.SUBMIT_SUCCEEDED): WidgetState.SUCCESS,
    (WidgetState.SUCCESS, WidgetEvent.SUCCESS_ELAPSED): WidgetState.BUTTON,
}

FORCED_TARGETS: Dict[WidgetEvent, WidgetState] = {
    WidgetEvent.OPEN: WidgetState.FORM,
    WidgetEvent.CLOSE: WidgetState.BUTTON,
}

Listener = Callable[[WidgetState, WidgetState, WidgetEvent], None]


def next_state(state: WidgetState, event: WidgetEvent) -> WidgetState:
    """Pure transition function."""
    if event in FORCED_TARGETS:
        return FORCED_TARGETS[event]
    return TRANSITIONS.get((state, event), state)


class WidgetStateMachine:
    def __init__(
        self,
        config: WidgetConfig,
        session_store: KeyValueStore,
        timer: Optional[PhaseTimer] = None,
        success_display_ms: Optional[int] = None,
        submitted_key: Optional[str] = None,
    ):
        self._config = config
        self._session_store = session_store
        self._timer = timer or PhaseTimer()
        self._success_display_ms = (
            settings.success_display_ms if success_display_ms is None else success_display_ms
        )
        self._submitted_key = submitted_key or settings.submitted_key
        self._state = WidgetState.HIDDEN
        self._listeners: List[Listener] = []

    # ── Accessors ────────────────────────────────────────────────────
    @property
    def state(self) -> WidgetState:
        return self._state

    @property
    def config(self) -> WidgetConfig:
        return self._config

    @property
    def timer(self) -> PhaseTimer:
        return self._timer

    @property
    def session_submitted(self) -> bool:
        return bool(self._session_store.get(self._submitted_key))

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ── Lifecycle ────────────────────────────────────────────────────
    def start(self, scheduler: TriggerScheduler) -> bool:
        """Hand the activation decision to the scheduler."""
        return scheduler.start(self._config, self._timer, self.trigger_fired)

    def shutdown(self) -> None:
        self._timer.cancel()

    # ── Events ───────────────────────────────────────────────────────
    def dispatch(self, event: WidgetEvent, payload: Any = None) -> WidgetState:
        old = self._state

        if event == WidgetEvent.CONFIG_UPDATE:
            self._config = resolve_config(self._config, payload)
            logger.info("Widget config updated", extra={"keys": sorted(payload or {})})
        elif event == WidgetEvent.SUBMIT_SUCCEEDED:
            # The endpoint recorded the feedback even if the form was dismissed meanwhile
            self._session_store.set(self._submitted_key, "true")

        if event in FORCED_TARGETS:
            # A command supersedes a pending activation
            self._timer.cancel(TimerPhase.TRIGGER)

        new = next_state(old, event)
        if new != old:
            self._enter(new)
            logger.info("Widget state %s → %s (%s)", old.value, new.value, event.value)

        for listener in list(self._listeners):
            try:
                listener(old, new, event)
            except Exception:
                logger.exception("State listener failed")
        return new

    def _enter(self, state: WidgetState) -> None:
        self._state = state
        if state == WidgetState.SUCCESS:
            self._timer.arm(TimerPhase.SUCCESS, self._success_display_ms, self.success_elapsed)
        else:
            self._timer.cancel()

    def trigger_fired(self) -> WidgetState:
        return self.dispatch(WidgetEvent.TRIGGER_FIRED)

    def open(self) -> WidgetState:
        return self.dispatch(WidgetEvent.OPEN)

    def close(self) -> WidgetState:
        return self.dispatch(WidgetEvent.CLOSE)

    def click(self) -> WidgetState:
        return self.dispatch(WidgetEvent.CLICK)

    def update_config(self, overrides: Mapping[str, Any]) -> WidgetState:
        return self.dispatch(WidgetEvent.CONFIG_UPDATE, overrides)

    def success_elapsed(self) -> WidgetState:
        return self.dispatch(WidgetEvent.SUCCESS_ELAPSED)

    def submit_succeeded(self) -> WidgetState:
        return self.dispatch(WidgetEvent.SUBMIT_SUCCEEDED)

    def submit_failed(self) -> WidgetState:
        return self.dispatch(WidgetEvent.SUBMIT_FAILED)
