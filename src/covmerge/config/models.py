"""Pydantic configuration models.

Two kinds of configuration exist:

1. ``LoggingConfig`` - ambient settings, loaded from env vars
   (``COVMERGE__LOGGING__LEVEL``) and an optional YAML file.
2. ``MergerConfig`` - the immutable per-invocation flags (output file,
   input location, filters). Built once by the CLI and never mutated.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        COVMERGE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG lists every parsed file.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class MergerConfig(BaseModel):
    """Invocation flags for one merge run.

    Exactly one of ``coverage_dir`` and ``reports_file`` names the inputs.
    """

    model_config = ConfigDict(frozen=True)

    output_file: Path = Field(description="Where the merged tracefile (or profdata copy) goes.")
    coverage_dir: Path | None = Field(
        default=None,
        description="Directory searched recursively for raw coverage files.",
    )
    reports_file: Path | None = Field(
        default=None,
        description="Newline-delimited list of tracefile paths.",
    )
    filter_sources: tuple[str, ...] = Field(
        default=(),
        description="Drop every source whose path contains one of these substrings.",
    )
    source_file_manifest: Path | None = Field(
        default=None,
        description="Keep only sources listed in this manifest.",
    )

    @field_validator("filter_sources", mode="before")
    @classmethod
    def split_filter_sources(cls, v: object) -> object:
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        if isinstance(v, list | tuple):
            # "a,b" and ["a", "b"] are equivalent
            parts = [p.strip() for item in v for p in str(item).split(",")]
            return tuple(p for p in parts if p)
        return v

    @model_validator(mode="after")
    def check_input_source(self) -> "MergerConfig":
        if self.coverage_dir is not None and self.reports_file is not None:
            raise ValueError("coverage_dir and reports_file are mutually exclusive")
        if self.coverage_dir is None and self.reports_file is None:
            raise ValueError("one of coverage_dir or reports_file is required")
        return self
