"""Configuration package."""
from .settings import (
    BackendConfig,
    ConversationConfig,
    DisplayConfig,
    LoggingConfig,
    Settings,
    load_config,
    settings,
)

__all__ = [
    "BackendConfig",
    "ConversationConfig",
    "DisplayConfig",
    "LoggingConfig",
    "Settings",
    "load_config",
    "settings",
]
