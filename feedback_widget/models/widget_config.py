"""
Widget Configuration Models
===========================

Pydantic models for the widget's active configuration and the resolver that
merges host overrides into the defaults.

Field names are snake_case; the camelCase names used by the embedding page
(apiUrl, triggerProbability, ...) are accepted as aliases everywhere.
"""

from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from feedback_widget.config import settings

WidgetPosition = Literal["bottom-right", "bottom-left", "top-right", "top-left"]

POSITIONS = ("bottom-right", "bottom-left", "top-right", "top-left")


class WidgetTheme(BaseModel):
    """Colors used by the rendered widget."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    primary_color: str = Field(default="#4a6cf7", alias="primaryColor")
    text_color: str = Field(default="#333333", alias="textColor")
    background_color: str = Field(default="#ffffff", alias="backgroundColor")
    star_color: str = Field(default="#ffc107", alias="starColor")
    dark_mode: bool = Field(default=False, alias="darkMode")


class WidgetConfig(BaseModel):
    """Immutable configuration snapshot for one render of the widget."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_url: str = Field(default=settings.api_url, alias="apiUrl")
    trigger_probability: float = Field(default=settings.trigger_probability, alias="triggerProbability")
    trigger_delay: int = Field(default=settings.trigger_delay_ms, alias="triggerDelay")  # milliseconds
    theme: WidgetTheme = Field(default_factory=WidgetTheme)
    company_name: str = Field(default=settings.company_name, alias="companyName")
    company_logo: str = Field(default=settings.company_logo, alias="companyLogo")
    position: WidgetPosition = Field(default=settings.position, alias="position")

    def to_public_dict(self) -> Dict[str, Any]:
        """camelCase view, as the embedding page sees it."""
        return self.model_dump(by_alias=True)


def _field_names(model: type[BaseModel]) -> Dict[str, str]:
    """Map every accepted key (field name and alias) to the field name."""
    names: Dict[str, str] = {}
    for name, info in model.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


_CONFIG_KEYS = _field_names(WidgetConfig)
_THEME_KEYS = _field_names(WidgetTheme)


def _normalize(overrides: Mapping[str, Any], keys: Dict[str, str]) -> Dict[str, Any]:
    return {keys[k]: v for k, v in overrides.items() if k in keys}


def resolve_config(
    defaults: WidgetConfig,
    overrides: Optional[Mapping[str, Any]] = None,
) -> WidgetConfig:
    """Merge ``overrides`` into ``defaults`` and return a new snapshot.

    Top-level fields are replaced; a ``theme`` mapping is merged field by
    field into the default theme. Unknown keys are ignored. Override values
    are NOT validated: model_copy(update=...) applies them as given.
    """
    if not overrides:
        return defaults

    update = _normalize(overrides, _CONFIG_KEYS)

    theme_override = update.pop("theme", None)
    if isinstance(theme_override, WidgetTheme):
        theme_override = theme_override.model_dump(exclude_unset=True)
    if isinstance(theme_override, Mapping):
        update["theme"] = defaults.theme.model_copy(
            update=_normalize(theme_override, _THEME_KEYS)
        )
    elif theme_override is not None:
        update["theme"] = theme_override

    return defaults.model_copy(update=update)


def default_widget_config() -> WidgetConfig:
    """Default configuration seeded from settings."""
    return WidgetConfig()
