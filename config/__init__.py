"""Configuration management for the workbench runtime."""

from .loader import ConfigLoader, load_config
from .schema import BuildConfig, HistoryConfig, RuntimeSettings, StartConfig, StreamingConfig

__all__ = [
    "BuildConfig",
    "ConfigLoader",
    "HistoryConfig",
    "RuntimeSettings",
    "StartConfig",
    "StreamingConfig",
    "load_config",
]
