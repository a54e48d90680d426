"""
Widget state and the events that drive it.
"""

from enum import Enum


class WidgetState(str, Enum):
    """Visible phase of the widget."""
    HIDDEN = "hidden"
    BUTTON = "button"
    FORM = "form"
    SUCCESS = "success"


class WidgetEvent(str, Enum):
    """Everything that can move the state machine."""
    OPEN = "open"                          # host command
    CLOSE = "close"                        # host command or close button
    CLICK = "click"                        # visitor clicked the launcher button
    CONFIG_UPDATE = "config_update"        # host command
    TRIGGER_FIRED = "trigger_fired"        # activation timer elapsed
    SUCCESS_ELAPSED = "success_elapsed"    # success screen timer elapsed
    SUBMIT_SUCCEEDED = "submit_succeeded"
    SUBMIT_FAILED = "submit_failed"


class TimerPhase(str, Enum):
    """Owner of the single phase timer."""
    TRIGGER = "trigger"
    SUCCESS = "success"
