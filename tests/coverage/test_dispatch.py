"""Tests for format classification and parser dispatch."""

from pathlib import Path

import pytest

from covmerge.core.errors import CoverageParseError, ErrorCode
from covmerge.coverage.aggregate import Coverage
from covmerge.coverage.models import CoverageFormat, FileCoverage, RawCoverageFile
from covmerge.coverage.parsers import (
    GcovParser,
    LcovParser,
    classify,
    group_by_format,
    parse_files,
    parser_for,
)


class TestClassify:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("out/coverage.dat", CoverageFormat.TRACEFILE),
            ("a/b/foo.gcov", CoverageFormat.GCOV_INFO),
            ("default.profdata", CoverageFormat.PROFDATA),
            ("notes.txt", None),
            ("foo.gcno", None),
            ("data", None),
        ],
    )
    def test_classify_by_extension(self, name: str, expected: CoverageFormat | None) -> None:
        assert classify(Path(name)) is expected


class TestGroupByFormat:
    def test_buckets_keep_discovery_order(self) -> None:
        paths = [Path("z.dat"), Path("x.gcov"), Path("a.dat"), Path("r.txt"), Path("p.profdata")]

        buckets = group_by_format(paths)

        assert [raw.path for raw in buckets[CoverageFormat.TRACEFILE]] == [
            Path("z.dat"),
            Path("a.dat"),
        ]
        assert [raw.path for raw in buckets[CoverageFormat.GCOV_INFO]] == [Path("x.gcov")]
        assert [raw.path for raw in buckets[CoverageFormat.PROFDATA]] == [Path("p.profdata")]

    def test_every_format_has_a_bucket(self) -> None:
        buckets = group_by_format([])
        assert set(buckets) == set(CoverageFormat)
        assert all(bucket == [] for bucket in buckets.values())


class TestParserFor:
    def test_ingestible_formats(self) -> None:
        assert isinstance(parser_for(CoverageFormat.TRACEFILE), LcovParser)
        assert isinstance(parser_for(CoverageFormat.GCOV_INFO), GcovParser)

    def test_profdata_has_no_parser(self) -> None:
        with pytest.raises(CoverageParseError) as exc_info:
            parser_for(CoverageFormat.PROFDATA)
        assert exc_info.value.code is ErrorCode.PARSE_UNSUPPORTED_FORMAT


class TestParseFiles:
    def test_cross_format_merge(self, write_file) -> None:
        tracefile = write_file("a.dat", "SF:src/a.cc\nDA:1,1\nDA:2,0\nend_of_record\n")
        gcov = write_file("a.gcov", "file:src/a.cc\nlcount:2,3\nlcount:5,1\n")

        coverage = Coverage()
        parse_files(
            [
                RawCoverageFile(path=tracefile, format=CoverageFormat.TRACEFILE),
                RawCoverageFile(path=gcov, format=CoverageFormat.GCOV_INFO),
            ],
            into=coverage,
        )

        assert coverage.get("src/a.cc") == FileCoverage(path="src/a.cc", lines={1: 1, 2: 3, 5: 1})

    def test_returns_new_aggregate_without_into(self, write_file) -> None:
        tracefile = write_file("a.dat", "SF:a.cc\nDA:1,1\nend_of_record\n")

        coverage = parse_files([RawCoverageFile(path=tracefile, format=CoverageFormat.TRACEFILE)])

        assert coverage.paths() == ["a.cc"]

    def test_malformed_file_error_names_file(self, write_file) -> None:
        bad = write_file("bad.dat", "SF:a.cc\nDA:one,1\n")

        with pytest.raises(CoverageParseError) as exc_info:
            parse_files([RawCoverageFile(path=bad, format=CoverageFormat.TRACEFILE)])

        error = exc_info.value
        assert error.code is ErrorCode.PARSE_MALFORMED
        assert error.details["path"] == str(bad)
        assert error.details["line"] == 2

    def test_missing_file_is_unreadable(self, tmp_path: Path) -> None:
        missing = tmp_path / "missing.dat"

        with pytest.raises(CoverageParseError) as exc_info:
            parse_files([RawCoverageFile(path=missing, format=CoverageFormat.TRACEFILE)])

        assert exc_info.value.code is ErrorCode.PARSE_UNREADABLE

    def test_first_failure_stops_parsing(self, write_file) -> None:
        bad = write_file("bad.dat", "DA:1,1\n")
        good = write_file("good.dat", "SF:a.cc\nDA:1,1\nend_of_record\n")
        coverage = Coverage()

        with pytest.raises(CoverageParseError):
            parse_files(
                [
                    RawCoverageFile(path=bad, format=CoverageFormat.TRACEFILE),
                    RawCoverageFile(path=good, format=CoverageFormat.TRACEFILE),
                ],
                into=coverage,
            )

        assert coverage.is_empty()
