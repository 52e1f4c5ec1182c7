"""Tests for configuration loading."""

from pathlib import Path

import pytest

from covmerge.config.loader import build_merger_config, load_logging_config
from covmerge.core.errors import ConfigError, ErrorCode


class TestLoadLoggingConfig:
    def test_defaults_without_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("COVMERGE__LOGGING__LEVEL", raising=False)
        config = load_logging_config()
        assert config.level == "INFO"

    def test_yaml_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("COVMERGE__LOGGING__LEVEL", raising=False)
        config_file = tmp_path / "covmerge.yaml"
        config_file.write_text(
            "logging:\n"
            "  level: WARNING\n"
            "  outputs:\n"
            "    - format: json\n"
            "      destination: stdout\n"
        )

        config = load_logging_config(config_file)

        assert config.level == "WARNING"
        assert config.outputs[0].format == "json"
        assert config.outputs[0].destination == "stdout"

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "covmerge.yaml"
        config_file.write_text("logging:\n  level: WARNING\n")
        monkeypatch.setenv("COVMERGE__LOGGING__LEVEL", "DEBUG")

        config = load_logging_config(config_file)

        assert config.level == "DEBUG"

    def test_invalid_yaml_raises_config_error(self, tmp_path: Path) -> None:
        config_file = tmp_path / "covmerge.yaml"
        config_file.write_text("logging: [unclosed\n")

        with pytest.raises(ConfigError) as exc_info:
            load_logging_config(config_file)

        assert exc_info.value.code is ErrorCode.CONFIG_PARSE_ERROR

    def test_non_mapping_yaml_raises_config_error(self, tmp_path: Path) -> None:
        config_file = tmp_path / "covmerge.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ConfigError, match="mapping"):
            load_logging_config(config_file)

    def test_missing_file_raises_config_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_logging_config(tmp_path / "nope.yaml")
        assert exc_info.value.code is ErrorCode.CONFIG_PARSE_ERROR

    def test_invalid_value_raises_config_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("COVMERGE__LOGGING__LEVEL", raising=False)
        config_file = tmp_path / "covmerge.yaml"
        config_file.write_text("logging:\n  level: LOUD\n")

        with pytest.raises(ConfigError) as exc_info:
            load_logging_config(config_file)

        assert exc_info.value.code is ErrorCode.CONFIG_INVALID_VALUE


class TestBuildMergerConfig:
    def test_valid_flags(self) -> None:
        config = build_merger_config(
            output_file="out.dat",
            coverage_dir="cov",
            filter_sources=["third_party/"],
        )
        assert config.output_file == Path("out.dat")
        assert config.filter_sources == ("third_party/",)

    def test_missing_output_file(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            build_merger_config(output_file=None, coverage_dir="cov")
        assert exc_info.value.code is ErrorCode.CONFIG_MISSING_REQUIRED

    def test_missing_inputs(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            build_merger_config(output_file="out.dat")
        assert exc_info.value.code is ErrorCode.CONFIG_MISSING_REQUIRED

    def test_both_inputs(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            build_merger_config(output_file="out.dat", coverage_dir="cov", reports_file="r.txt")
        assert exc_info.value.code is ErrorCode.CONFIG_MUTUALLY_EXCLUSIVE
