"""Coverage parsing, merging, filtering, and reporting.

Usage:
    from covmerge.coverage import Coverage, group_by_format, parse_files, write_report

    buckets = group_by_format(paths)
    coverage = parse_files(buckets[CoverageFormat.TRACEFILE])
    write_report(Path("coverage.dat"), coverage)

Supported formats:
    - tracefile (.dat): LCOV text
    - gcov info (.gcov): gcov intermediate text
    - profdata (.profdata): not parsed, passed through when it is the only input
"""

from covmerge.coverage.models import (
    BranchCoverage,
    CoverageFormat,
    FileCoverage,
    FunctionCoverage,
    RawCoverageFile,
)
from covmerge.coverage.merge import merge_file_coverage
from covmerge.coverage.aggregate import Coverage
from covmerge.coverage.parsers import (
    PARSER_BY_FORMAT,
    CoverageParser,
    classify,
    group_by_format,
    parse_files,
    parser_for,
)
from covmerge.coverage.discovery import (
    BASELINE_COVERAGE_FILENAME,
    discover,
    find_coverage_files,
    read_reports_manifest,
)
from covmerge.coverage.filters import (
    METADATA_EXTENSIONS,
    apply_filters,
    is_metadata_file,
    read_source_manifest,
)
from covmerge.coverage.report import (
    build_text_summary,
    write_lcov,
    write_report,
)

__all__ = [
    # Models
    "BranchCoverage",
    "Coverage",
    "CoverageFormat",
    "FileCoverage",
    "FunctionCoverage",
    "RawCoverageFile",
    # Merge
    "merge_file_coverage",
    # Parsers
    "CoverageParser",
    "PARSER_BY_FORMAT",
    "classify",
    "group_by_format",
    "parse_files",
    "parser_for",
    # Discovery
    "BASELINE_COVERAGE_FILENAME",
    "discover",
    "find_coverage_files",
    "read_reports_manifest",
    # Filters
    "METADATA_EXTENSIONS",
    "apply_filters",
    "is_metadata_file",
    "read_source_manifest",
    # Report
    "build_text_summary",
    "write_lcov",
    "write_report",
]
