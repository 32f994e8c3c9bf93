"""Environment-driven configuration."""

from .config import (
    Config,
    NarrativeSettings,
    load_config,
    resolve_narrative_settings,
    validate_config,
)

__all__ = [
    "Config",
    "NarrativeSettings",
    "load_config",
    "resolve_narrative_settings",
    "validate_config",
]
