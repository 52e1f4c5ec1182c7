"""covmerge error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Parse
- 4xxx: Coverage (nothing usable to merge)
- 5xxx: Output

Every fatal condition of a run is one of these. The pipeline raises them at
the point of detection; the ``covmerge`` click command is the only place
that turns them into an exit status.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_MUTUALLY_EXCLUSIVE = 2004

    # Parse (3xxx)
    PARSE_MALFORMED = 3001
    PARSE_UNREADABLE = 3002
    PARSE_UNSUPPORTED_FORMAT = 3003

    # Coverage (4xxx)
    NO_COVERAGE = 4001
    MULTIPLE_PROFDATA = 4002

    # Output (5xxx)
    OUTPUT_WRITE_FAILED = 5001


@dataclass(frozen=True, slots=True)
class CovMergeError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'NO_COVERAGE')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON log output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CovMergeError):
    """Invalid or missing invocation flags and config files."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required flag: {field}",
            details={"field": field},
        )

    @classmethod
    def mutually_exclusive(cls, *fields: str) -> "ConfigError":
        joined = ", ".join(fields)
        return cls(
            code=ErrorCode.CONFIG_MUTUALLY_EXCLUSIVE,
            message=f"Only one of these flags may be given: {joined}",
            details={"fields": list(fields)},
        )


class CoverageParseError(CovMergeError):
    """A raw coverage file could not be read or parsed."""

    @classmethod
    def malformed(
        cls, reason: str, *, path: str | None = None, line: int | None = None
    ) -> "CoverageParseError":
        where = ""
        if path is not None:
            where = f"{path}:{line}: " if line is not None else f"{path}: "
        elif line is not None:
            where = f"line {line}: "
        return cls(
            code=ErrorCode.PARSE_MALFORMED,
            message=f"{where}{reason}",
            details={"path": path, "line": line, "reason": reason},
        )

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "CoverageParseError":
        return cls(
            code=ErrorCode.PARSE_UNREADABLE,
            message=f"File {path} could not be parsed due to: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def unsupported_format(cls, format_id: str) -> "CoverageParseError":
        return cls(
            code=ErrorCode.PARSE_UNSUPPORTED_FORMAT,
            message=f"No parser available for coverage format: {format_id!r}",
            details={"format": format_id},
        )


class NoCoverageError(CovMergeError):
    """Nothing textual to merge and no single profdata file to pass through."""

    @classmethod
    def no_coverage(cls) -> "NoCoverageError":
        return cls(
            code=ErrorCode.NO_COVERAGE,
            message="There was no coverage found.",
        )

    @classmethod
    def multiple_profdata(cls, count: int) -> "NoCoverageError":
        return cls(
            code=ErrorCode.MULTIPLE_PROFDATA,
            message=f"Only one profdata file per test is supported, but {count} were found.",
            details={"count": count},
        )


class OutputWriteError(CovMergeError):
    """The merged report or profdata copy could not be written."""

    @classmethod
    def write_failed(cls, path: str, reason: str) -> "OutputWriteError":
        return cls(
            code=ErrorCode.OUTPUT_WRITE_FAILED,
            message=f"Could not write to output file {path} due to {reason}",
            details={"path": path, "reason": reason},
        )
