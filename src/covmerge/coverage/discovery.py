"""Raw coverage file discovery.

Discovery never fails a run: an unreadable directory or manifest is logged
and treated as "no files found", and the pipeline's empty-coverage handling
takes it from there.
"""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from covmerge.config.models import MergerConfig
from covmerge.core.logging import get_logger
from covmerge.coverage.models import CoverageFormat, RawCoverageFile
from covmerge.coverage.parsers import group_by_format

# Baseline coverage lists sources with zero hits under paths that don't match
# the instrumented ones; merging it would add phantom files.
BASELINE_COVERAGE_FILENAME = "baseline_coverage.dat"

_DISCOVERABLE_EXTENSIONS = tuple(fmt.extension for fmt in CoverageFormat)


def find_coverage_files(
    coverage_dir: Path,
    *,
    log: structlog.stdlib.BoundLogger | None = None,
) -> list[Path]:
    """Return every raw coverage file below ``coverage_dir``, sorted."""
    log = log or get_logger(__name__)
    if not coverage_dir.is_dir():
        log.error(
            "discovery.coverage_dir_unreadable",
            path=str(coverage_dir),
            reason="not a directory",
        )
        return []

    found: list[Path] = []

    def on_error(exc: OSError) -> None:
        log.error(
            "discovery.coverage_dir_unreadable",
            path=str(exc.filename or coverage_dir),
            reason=exc.strerror,
        )

    for root, _dirs, files in os.walk(coverage_dir, onerror=on_error):
        for name in files:
            if name.endswith(_DISCOVERABLE_EXTENSIONS):
                found.append(Path(root) / name)
    return sorted(found)


def read_reports_manifest(
    reports_file: Path,
    *,
    log: structlog.stdlib.BoundLogger | None = None,
) -> list[Path]:
    """Return the tracefile paths listed in ``reports_file``.

    Blank lines and the baseline coverage file are skipped.
    """
    log = log or get_logger(__name__)
    tracefiles: list[Path] = []
    try:
        with reports_file.open(encoding="utf-8") as f:
            for raw in f:
                entry = raw.strip()
                if not entry or entry.endswith(BASELINE_COVERAGE_FILENAME):
                    continue
                tracefiles.append(Path(entry))
    except (OSError, UnicodeDecodeError) as e:
        log.error("discovery.reports_file_unreadable", path=str(reports_file), reason=str(e))
        return []
    return tracefiles


def discover(
    config: MergerConfig,
    *,
    log: structlog.stdlib.BoundLogger | None = None,
) -> dict[CoverageFormat, list[RawCoverageFile]]:
    """Return the raw coverage files for ``config``, bucketed by format.

    With ``coverage_dir`` the tree walk is classified by extension. With
    ``reports_file`` every listed entry is a tracefile whatever its name, and
    no profdata is ever picked up.
    """
    log = log or get_logger(__name__)
    if config.coverage_dir is not None:
        files = find_coverage_files(config.coverage_dir, log=log)
        return group_by_format(f for f in files if f.name != BASELINE_COVERAGE_FILENAME)

    buckets: dict[CoverageFormat, list[RawCoverageFile]] = {fmt: [] for fmt in CoverageFormat}
    if config.reports_file is not None:
        buckets[CoverageFormat.TRACEFILE] = [
            RawCoverageFile(path=path, format=CoverageFormat.TRACEFILE)
            for path in read_reports_manifest(config.reports_file, log=log)
        ]
    return buckets


def log_discovered(
    buckets: dict[CoverageFormat, list[RawCoverageFile]],
    *,
    log: structlog.stdlib.BoundLogger,
) -> None:
    for fmt in CoverageFormat:
        count = len(buckets.get(fmt, []))
        if count:
            log.info("discovery.found", format=fmt.name.lower(), count=count)
        else:
            log.info("discovery.none_found", format=fmt.name.lower())
