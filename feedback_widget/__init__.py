from .embed import auto_init, auto_init_from_html
from .host import HostPage
from .main import WidgetHandle, init
from .models.page import PageContext
from .models.state import WidgetState
from .models.widget_config import WidgetConfig, WidgetTheme, resolve_config
from .widget import FeedbackWidget

__all__ = [
    "auto_init",
    "auto_init_from_html",
    "init",
    "FeedbackWidget",
    "HostPage",
    "PageContext",
    "WidgetConfig",
    "WidgetHandle",
    "WidgetState",
    "WidgetTheme",
    "resolve_config",
]
