"""Core module exports."""

from covmerge.core.errors import (
    ConfigError,
    CoverageParseError,
    CovMergeError,
    ErrorCode,
    NoCoverageError,
    OutputWriteError,
)
from covmerge.core.logging import (
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "CoverageParseError",
    "CovMergeError",
    "ErrorCode",
    "NoCoverageError",
    "OutputWriteError",
    # Logging
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
