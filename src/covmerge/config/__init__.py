"""Config module exports."""

from covmerge.config.loader import build_merger_config, load_logging_config
from covmerge.config.models import LoggingConfig, LogOutputConfig, MergerConfig

__all__ = [
    "build_merger_config",
    "load_logging_config",
    "LoggingConfig",
    "LogOutputConfig",
    "MergerConfig",
]
