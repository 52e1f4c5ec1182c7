"""Narrowing the merged aggregate to the sources a build cares about."""

from __future__ import annotations

from pathlib import Path

import structlog

from covmerge.config.models import MergerConfig
from covmerge.core.logging import get_logger
from covmerge.coverage.aggregate import Coverage

# Instrumentation metadata listed next to sources in the manifest
METADATA_EXTENSIONS = (".gcno", ".em")


def is_metadata_file(filename: str) -> bool:
    return filename.endswith(METADATA_EXTENSIONS)


def read_source_manifest(
    manifest: Path,
    *,
    log: structlog.stdlib.BoundLogger | None = None,
) -> frozenset[str]:
    """Return the source files named in ``manifest``.

    The manifest lists one file per line, mixing sources (.java, .cc, ...)
    with coverage metadata (.gcno, .em). Only the sources are returned. An
    unreadable manifest is logged and yields an empty set.
    """
    log = log or get_logger(__name__)
    sources: set[str] = set()
    try:
        with manifest.open(encoding="utf-8") as f:
            for raw in f:
                entry = raw.rstrip("\r\n")
                if entry and not is_metadata_file(entry):
                    sources.add(entry)
    except (OSError, UnicodeDecodeError) as e:
        log.error("filter.manifest_unreadable", path=str(manifest), reason=str(e))
    return frozenset(sources)


def apply_filters(
    coverage: Coverage,
    config: MergerConfig,
    *,
    log: structlog.stdlib.BoundLogger | None = None,
) -> Coverage:
    """Apply substring exclusion, then the manifest allow-list.

    Each step runs only if its flag was given and returns a new aggregate.
    """
    log = log or get_logger(__name__)

    if config.filter_sources:
        before = len(coverage)
        coverage = coverage.filter_out_matching(config.filter_sources)
        log.info(
            "filter.excluded_matching",
            patterns=list(config.filter_sources),
            removed=before - len(coverage),
        )

    if config.source_file_manifest is not None:
        before = len(coverage)
        allowed = read_source_manifest(config.source_file_manifest, log=log)
        coverage = coverage.only_these_sources(allowed)
        log.info(
            "filter.manifest_applied",
            manifest=str(config.source_file_manifest),
            allowed=len(allowed),
            removed=before - len(coverage),
        )

    return coverage
