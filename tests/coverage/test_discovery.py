"""Tests for raw coverage file discovery."""

from pathlib import Path
from unittest.mock import Mock

from covmerge.config.models import MergerConfig
from covmerge.coverage.models import CoverageFormat, RawCoverageFile
from covmerge.coverage.discovery import (
    discover,
    find_coverage_files,
    read_reports_manifest,
)


class TestFindCoverageFiles:
    def test_finds_coverage_files_recursively(self, tmp_path: Path, write_file) -> None:
        write_file("a/test.dat", "")
        write_file("a/b/unit.gcov", "")
        write_file("c/default.profdata", b"\x00")
        write_file("c/notes.txt", "")
        write_file("c/unit.gcno", "")

        found = find_coverage_files(tmp_path)

        assert found == [
            tmp_path / "a/b/unit.gcov",
            tmp_path / "a/test.dat",
            tmp_path / "c/default.profdata",
        ]

    def test_missing_dir_logs_and_returns_empty(self, tmp_path: Path) -> None:
        log = Mock()

        found = find_coverage_files(tmp_path / "nope", log=log)

        assert found == []
        log.error.assert_called_once()
        assert log.error.call_args.args[0] == "discovery.coverage_dir_unreadable"


class TestReadReportsManifest:
    def test_skips_baseline_and_blank_lines(self, write_file) -> None:
        manifest = write_file("reports.txt", "x/baseline_coverage.dat\n\nx/test.dat\n")

        assert read_reports_manifest(manifest) == [Path("x/test.dat")]

    def test_unreadable_manifest_logs_and_returns_empty(self, tmp_path: Path) -> None:
        log = Mock()

        assert read_reports_manifest(tmp_path / "missing.txt", log=log) == []
        log.error.assert_called_once()


class TestDiscover:
    def test_uses_coverage_dir(self, tmp_path: Path, write_file) -> None:
        write_file("cov/one.dat", "")
        write_file("cov/unit.gcov", "")
        write_file("cov/default.profdata", b"\x00")
        config = MergerConfig(output_file=tmp_path / "out.dat", coverage_dir=tmp_path / "cov")

        buckets = discover(config)

        tracefiles = buckets[CoverageFormat.TRACEFILE]
        assert [raw.path for raw in tracefiles] == [tmp_path / "cov/one.dat"]
        assert [raw.path for raw in buckets[CoverageFormat.GCOV_INFO]] == [
            tmp_path / "cov/unit.gcov"
        ]
        assert [raw.path for raw in buckets[CoverageFormat.PROFDATA]] == [
            tmp_path / "cov/default.profdata"
        ]

    def test_baseline_excluded_from_coverage_dir(self, tmp_path: Path, write_file) -> None:
        write_file("cov/baseline_coverage.dat", "")
        write_file("cov/test.dat", "")
        config = MergerConfig(output_file=tmp_path / "out.dat", coverage_dir=tmp_path / "cov")

        buckets = discover(config)

        tracefiles = buckets[CoverageFormat.TRACEFILE]
        assert [raw.path for raw in tracefiles] == [tmp_path / "cov/test.dat"]

    def test_uses_reports_file(self, tmp_path: Path, write_file) -> None:
        manifest = write_file("reports.txt", "x/baseline_coverage.dat\nx/test.dat\n")
        config = MergerConfig(output_file=tmp_path / "out.dat", reports_file=manifest)

        buckets = discover(config)

        assert buckets[CoverageFormat.TRACEFILE] == [
            RawCoverageFile(path=Path("x/test.dat"), format=CoverageFormat.TRACEFILE)
        ]

    def test_reports_file_entries_are_tracefiles_whatever_the_extension(
        self, tmp_path: Path, write_file
    ) -> None:
        # Given
        manifest = write_file(
            "reports.txt", "x/coverage.lcov\nx/default.profdata\nx/unit.gcov\n"
        )
        config = MergerConfig(output_file=tmp_path / "out.dat", reports_file=manifest)

        # When
        buckets = discover(config)

        # Then
        assert [raw.path for raw in buckets[CoverageFormat.TRACEFILE]] == [
            Path("x/coverage.lcov"),
            Path("x/default.profdata"),
            Path("x/unit.gcov"),
        ]
        assert buckets[CoverageFormat.GCOV_INFO] == []
        assert buckets[CoverageFormat.PROFDATA] == []
