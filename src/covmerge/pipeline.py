"""One merge run: discover, parse, merge, filter, emit.

Fatal conditions raise a ``CovMergeError`` subclass where they are detected;
nothing after that point runs and no output is written. Discovery and
manifest read problems are logged and treated as "nothing found".
"""

from __future__ import annotations

import os
import shutil
import tempfile
from enum import Enum
from pathlib import Path

import structlog

from covmerge.config.models import MergerConfig
from covmerge.core.errors import NoCoverageError, OutputWriteError
from covmerge.core.logging import get_logger
from covmerge.coverage.aggregate import Coverage
from covmerge.coverage.discovery import discover, log_discovered
from covmerge.coverage.filters import apply_filters
from covmerge.coverage.models import CoverageFormat
from covmerge.coverage.parsers import parse_files
from covmerge.coverage.report import build_text_summary, write_report


class CoverageState(Enum):
    """What a run can do with the coverage it found."""

    HAS_COVERAGE = "has_coverage"
    NO_COVERAGE_NO_PROFDATA = "no_coverage_no_profdata"
    NO_COVERAGE_ONE_PROFDATA = "no_coverage_one_profdata"
    NO_COVERAGE_MULTIPLE_PROFDATA = "no_coverage_multiple_profdata"


class RunOutcome(Enum):
    """How a successful run produced its output."""

    REPORT_WRITTEN = "report_written"
    PROFDATA_PASSTHROUGH = "profdata_passthrough"


def classify_state(coverage: Coverage, profdata_files: list[Path]) -> CoverageState:
    if not coverage.is_empty():
        return CoverageState.HAS_COVERAGE
    if not profdata_files:
        return CoverageState.NO_COVERAGE_NO_PROFDATA
    if len(profdata_files) == 1:
        return CoverageState.NO_COVERAGE_ONE_PROFDATA
    return CoverageState.NO_COVERAGE_MULTIPLE_PROFDATA


def copy_profdata(profdata: Path, output_file: Path) -> None:
    """Copy ``profdata`` byte-for-byte to ``output_file``.

    The bytes go to a temporary sibling first, so a failed copy never leaves
    a truncated file at ``output_file``.

    Raises:
        OutputWriteError: If the copy fails.
    """
    tmp_name: str | None = None
    try:
        parent = output_file.parent
        parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{output_file.name}.", dir=parent)
        os.close(fd)
        shutil.copyfile(profdata, tmp_name)
        os.replace(tmp_name, output_file)
        tmp_name = None
    except OSError as e:
        raise OutputWriteError.write_failed(str(output_file), e.strerror or str(e)) from e
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)


def run(
    config: MergerConfig,
    *,
    log: structlog.stdlib.BoundLogger | None = None,
) -> RunOutcome:
    """Execute one merge run for ``config``.

    Returns:
        How the output file was produced.

    Raises:
        CoverageParseError: A raw coverage file is unreadable or malformed.
        NoCoverageError: Nothing to merge and zero or several profdata files.
        OutputWriteError: The output file could not be written.
    """
    log = log or get_logger(__name__)

    buckets = discover(config, log=log)
    log_discovered(buckets, log=log)

    coverage = Coverage(log=log)
    parse_files(buckets[CoverageFormat.TRACEFILE], into=coverage, log=log)
    parse_files(buckets[CoverageFormat.GCOV_INFO], into=coverage, log=log)

    profdata_files = [raw.path for raw in buckets[CoverageFormat.PROFDATA]]
    state = classify_state(coverage, profdata_files)
    log.debug("pipeline.state", state=state.value, sources=len(coverage))

    if state is CoverageState.NO_COVERAGE_NO_PROFDATA:
        raise NoCoverageError.no_coverage()
    if state is CoverageState.NO_COVERAGE_MULTIPLE_PROFDATA:
        raise NoCoverageError.multiple_profdata(len(profdata_files))
    if state is CoverageState.NO_COVERAGE_ONE_PROFDATA:
        # profdata can't be converted to lcov yet; hand it over untouched
        log.info("pipeline.profdata_passthrough", profdata=str(profdata_files[0]))
        copy_profdata(profdata_files[0], config.output_file)
        return RunOutcome.PROFDATA_PASSTHROUGH

    coverage = apply_filters(coverage, config, log=log)
    write_report(config.output_file, coverage)
    log.info(
        "pipeline.report_written",
        output=str(config.output_file),
        summary=build_text_summary(coverage),
    )
    return RunOutcome.REPORT_WRITTEN
