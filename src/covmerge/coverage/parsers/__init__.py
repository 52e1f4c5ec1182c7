"""Coverage parser registry and format dispatch.

This module provides:
- classify: Raw format of a file, from its extension
- group_by_format: Bucket discovered files by format, keeping discovery order
- parser_for: The parser for an ingestible format
- parse_files: Feed every record of a list of files into an aggregate
"""

from collections.abc import Iterable, Mapping
from pathlib import Path

import structlog

from covmerge.core.errors import CoverageParseError, ErrorCode
from covmerge.core.logging import get_logger
from covmerge.coverage.aggregate import Coverage
from covmerge.coverage.models import CoverageFormat, RawCoverageFile

from .base import CoverageParser, FileCoverageBuilder, parse_int
from .gcov import GcovParser
from .lcov import LcovParser

PARSER_BY_FORMAT: Mapping[CoverageFormat, CoverageParser] = {
    CoverageFormat.TRACEFILE: LcovParser(),
    CoverageFormat.GCOV_INFO: GcovParser(),
}

__all__ = [
    "PARSER_BY_FORMAT",
    "classify",
    "group_by_format",
    "parse_files",
    "parser_for",
    "CoverageParser",
    "FileCoverageBuilder",
    "GcovParser",
    "LcovParser",
    "parse_int",
]


def classify(path: Path | str) -> CoverageFormat | None:
    """Return the raw format of ``path`` by extension, or None if unrecognized."""
    name = str(path)
    for fmt in CoverageFormat:
        if name.endswith(fmt.extension):
            return fmt
    return None


def group_by_format(paths: Iterable[Path]) -> dict[CoverageFormat, list[RawCoverageFile]]:
    """Bucket files by raw format. Every format has a (possibly empty) bucket."""
    buckets: dict[CoverageFormat, list[RawCoverageFile]] = {fmt: [] for fmt in CoverageFormat}
    for path in paths:
        fmt = classify(path)
        if fmt is not None:
            buckets[fmt].append(RawCoverageFile(path=path, format=fmt))
    return buckets


def parser_for(fmt: CoverageFormat) -> CoverageParser:
    """Return the parser for ``fmt``.

    Raises:
        CoverageParseError: If the format cannot be parsed (profdata).
    """
    parser = PARSER_BY_FORMAT.get(fmt)
    if parser is None:
        raise CoverageParseError.unsupported_format(fmt.name.lower())
    return parser


def parse_files(
    files: Iterable[RawCoverageFile],
    *,
    into: Coverage | None = None,
    log: structlog.stdlib.BoundLogger | None = None,
) -> Coverage:
    """Parse each file with its format's parser and add every record to ``into``.

    Files are parsed in the order given. The first failure aborts.

    Raises:
        CoverageParseError: If any file is unreadable or malformed.
    """
    log = log or get_logger(__name__)
    coverage = into if into is not None else Coverage(log=log)
    for raw in files:
        parser = parser_for(raw.format)
        log.debug("parse.file", path=str(raw.path), format=raw.format.name.lower())
        try:
            with raw.path.open(encoding="utf-8") as stream:
                records = parser.parse(stream)
        except (OSError, UnicodeDecodeError) as e:
            raise CoverageParseError.unreadable(str(raw.path.absolute()), str(e)) from e
        except CoverageParseError as e:
            if e.code is ErrorCode.PARSE_MALFORMED and e.details.get("path") is None:
                raise CoverageParseError.malformed(
                    e.details["reason"], path=str(raw.path), line=e.details.get("line")
                ) from e
            raise
        coverage.add_all(records)
    return coverage
