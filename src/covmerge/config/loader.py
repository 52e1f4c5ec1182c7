"""Configuration loading with pydantic-settings.

Logging settings are resolved with this precedence:
1. Direct kwargs (highest priority)
2. Environment variables (COVMERGE__LOGGING__LEVEL)
3. YAML file passed with ``--config``
4. Built-in defaults (lowest priority)

Invocation flags never come from the environment; ``build_merger_config``
validates what the CLI parsed.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from covmerge.config.models import LoggingConfig, MergerConfig
from covmerge.core.errors import ConfigError


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError.parse_error(str(path), "file does not exist")
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class bound to one YAML source."""

    class CovMergeSettings(BaseSettings):
        """Root settings. Env vars: COVMERGE__LOGGING__LEVEL, etc."""

        model_config = SettingsConfigDict(
            env_prefix="COVMERGE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml file
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return CovMergeSettings


def load_logging_config(config_path: Path | None = None, **kwargs: Any) -> LoggingConfig:
    """Load logging config: defaults < YAML file < env vars < kwargs.

    Raises:
        ConfigError: On unreadable YAML or validation errors.
    """
    yaml_config = _load_yaml(config_path) if config_path is not None else {}
    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return settings.logging  # type: ignore[attr-defined,no-any-return]


def build_merger_config(
    *,
    output_file: str | Path | None,
    coverage_dir: str | Path | None = None,
    reports_file: str | Path | None = None,
    filter_sources: list[str] | tuple[str, ...] | None = None,
    source_file_manifest: str | Path | None = None,
) -> MergerConfig:
    """Validate parsed flags into an immutable ``MergerConfig``.

    Raises:
        ConfigError: If a required flag is missing, both input flags are
            given, or a value fails validation.
    """
    if not output_file:
        raise ConfigError.missing_required("output_file")
    if coverage_dir and reports_file:
        raise ConfigError.mutually_exclusive("coverage_dir", "reports_file")
    if not coverage_dir and not reports_file:
        raise ConfigError.missing_required("coverage_dir or reports_file")

    try:
        return MergerConfig(
            output_file=output_file,
            coverage_dir=coverage_dir or None,
            reports_file=reports_file or None,
            filter_sources=filter_sources or (),
            source_file_manifest=source_file_manifest or None,
        )
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"]) or "flags"
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
