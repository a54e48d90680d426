"""
FeedbackWidget: one mounted instance of the feedback widget.
=============================================================

Wires the runtime together:

    IdentityManager ──► SubmissionClient ──► WidgetStateMachine ◄── TriggerScheduler
                                                    ▲
                                               CommandBus ◄── page channel

mount() must run inside the host's event loop. Nothing raised inside the
widget reaches the host: submission errors become ``error_message`` and a
SubmissionOutcome.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from feedback_widget.core.errors import SubmissionInFlightError, WidgetError
from feedback_widget.core.errors.registry import log_widget_error
from feedback_widget.core.structured_logging import bind_identity
from feedback_widget.models.page import PageContext
from feedback_widget.models.state import WidgetState
from feedback_widget.models.widget_config import WidgetConfig
from feedback_widget.services.command_bus import CommandBus, MessageChannel
from feedback_widget.services.identity_service import IdentityManager, SessionIdentity
from feedback_widget.services.phase_timer import PhaseTimer
from feedback_widget.services.state_machine import WidgetStateMachine
from feedback_widget.services.storage import KeyValueStore
from feedback_widget.services.submission_client import SubmissionClient
from feedback_widget.services.trigger_scheduler import TriggerScheduler

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    """Replace NaN/inf (unparsed embed numbers) with None, recursively."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    return value


BUTTON_LABEL = "Feedback"
SUCCESS_TITLE = "Thank you!"

# Corner offsets (px) keyed by position
POSITION_OFFSETS: Dict[str, Dict[str, int]] = {
    "bottom-right": {"bottom": 20, "right": 20},
    "bottom-left": {"bottom": 20, "left": 20},
    "top-right": {"top": 20, "right": 20},
    "top-left": {"top": 20, "left": 20},
}


@dataclass(frozen=True)
class SubmissionOutcome:
    accepted: bool
    state: WidgetState
    error: Optional[str] = None
    error_code: Optional[str] = None


class FeedbackWidget:
    def __init__(
        self,
        config: WidgetConfig,
        channel: MessageChannel,
        session_store: KeyValueStore,
        durable_store: KeyValueStore,
        page: Optional[PageContext] = None,
        rng: Optional[random.Random] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        success_display_ms: Optional[int] = None,
    ):
        self._rng = rng or random.Random()
        self._page = page or PageContext()
        self._transport = transport

        self._identity_manager = IdentityManager(durable_store, rng=self._rng)
        self._scheduler = TriggerScheduler(session_store, rng=self._rng)
        self._machine = WidgetStateMachine(
            config,
            session_store,
            timer=PhaseTimer(),
            success_display_ms=success_display_ms,
        )
        self._machine.add_listener(self._on_transition)
        self._bus = CommandBus(
            channel,
            on_open=self._machine.open,
            on_close=self._machine.close,
            on_config=self._machine.update_config,
        )

        self._identity: Optional[SessionIdentity] = None
        self._client: Optional[SubmissionClient] = None
        self._mounted = False
        self._torn_down = False
        self.error_message: Optional[str] = None

    # ── Accessors ────────────────────────────────────────────────────
    @property
    def state(self) -> WidgetState:
        return self._machine.state

    @property
    def config(self) -> WidgetConfig:
        return self._machine.config

    @property
    def machine(self) -> WidgetStateMachine:
        return self._machine

    @property
    def scheduler(self) -> TriggerScheduler:
        return self._scheduler

    @property
    def session_id(self) -> Optional[str]:
        return self._identity.session_id if self._identity else None

    @property
    def client_id(self) -> Optional[str]:
        return self._identity.client_id if self._identity else None

    @property
    def is_submitting(self) -> bool:
        return bool(self._client and self._client.in_flight)

    @property
    def mounted(self) -> bool:
        return self._mounted

    # ── Lifecycle ────────────────────────────────────────────────────
    def mount(self) -> None:
        if self._mounted:
            return
        self._identity = self._identity_manager.resolve()
        bind_identity(self._identity.session_id, self._identity.client_id)
        self._client = SubmissionClient(
            config_provider=lambda: self._machine.config,
            identity=self._identity,
            page=self._page,
            transport=self._transport,
        )
        self._bus.attach()
        try:
            self._machine.start(self._scheduler)
        except (TypeError, ValueError):
            # Malformed trigger settings are not validated; the widget stays hidden
            logger.exception("Trigger could not be evaluated, widget stays hidden")
        self._mounted = True
        self._torn_down = False
        logger.info("Widget mounted (state=%s)", self.state.value)

    def unmount(self) -> None:
        if not self._mounted:
            return
        self._machine.shutdown()
        self._bus.detach()
        self._mounted = False
        self._torn_down = True
        logger.info("Widget unmounted")

    # ── Visitor actions ──────────────────────────────────────────────
    def click_button(self) -> WidgetState:
        return self._machine.click()

    def close_form(self) -> WidgetState:
        return self._machine.close()

    def can_submit(self, rating) -> bool:
        return bool(self._client) and self.state == WidgetState.FORM and self._client.can_submit(rating)

    async def submit(self, rating, comment: Optional[str] = "", email: Optional[str] = None) -> SubmissionOutcome:
        """Submit the form. Never raises: errors become an outcome + inline message."""
        if self._client is None or self.state != WidgetState.FORM:
            logger.warning("Submit ignored: widget not showing the form (state=%s)", self.state.value)
            return SubmissionOutcome(accepted=False, state=self.state)

        try:
            result = await self._client.submit(rating, comment, email)
        except WidgetError as e:
            log_widget_error(e, logger)
            if not isinstance(e, SubmissionInFlightError):
                self.error_message = e.safe_message
            return SubmissionOutcome(
                accepted=False, state=self.state, error=e.safe_message, error_code=e.code,
            )

        if self._torn_down:
            logger.info("Widget torn down during submission, ignoring result")
            return SubmissionOutcome(accepted=result.success, state=self.state, error=result.error)

        if result.success:
            self.error_message = None
            self._machine.submit_succeeded()
            return SubmissionOutcome(accepted=True, state=self.state)

        self.error_message = result.error
        self._machine.submit_failed()
        return SubmissionOutcome(
            accepted=False, state=self.state, error=result.error, error_code=result.error_code,
        )

    def _on_transition(self, old: WidgetState, new: WidgetState, event) -> None:
        # A fresh form starts without a stale error
        if new == WidgetState.FORM and old != WidgetState.FORM:
            self.error_message = None

    # ── Introspection ────────────────────────────────────────────────
    def view(self) -> Optional[Dict[str, Any]]:
        """Presentation-level description of the current phase; None when hidden."""
        state = self.state
        if state == WidgetState.HIDDEN:
            return None
        config = self.config
        view: Dict[str, Any] = {
            "state": state.value,
            "position": POSITION_OFFSETS.get(config.position, POSITION_OFFSETS["bottom-right"]),
            "theme": config.theme.model_dump(by_alias=True),
        }
        if state == WidgetState.BUTTON:
            view["label"] = BUTTON_LABEL
        elif state == WidgetState.FORM:
            view["title"] = f"How was your experience with {config.company_name}?"
            view["logo"] = config.company_logo or None
            view["submitting"] = self.is_submitting
            view["error"] = self.error_message
        else:
            view["title"] = SUCCESS_TITLE
            view["message"] = (
                "Your feedback has been submitted successfully. We appreciate you "
                f"taking the time to share your thoughts with {config.company_name}."
            )
        return view

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "mounted": self._mounted,
            "session_id": self.session_id,
            "client_id": self.client_id,
            "session_submitted": self._machine.session_submitted,
            "submitting": self.is_submitting,
            "error": self.error_message,
            "timer_phase": self._machine.timer.phase.value if self._machine.timer.phase else None,
            "config": _json_safe(self.config.to_public_dict()),
        }
