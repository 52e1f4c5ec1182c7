"""The merged coverage aggregate.

``Coverage`` maps each source path to exactly one ``FileCoverage``. The only
way to change it is ``add``; filtering returns a new instance and leaves the
original untouched.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Iterator

import structlog

from covmerge.core.logging import get_logger
from covmerge.coverage.merge import merge_file_coverage
from covmerge.coverage.models import FileCoverage


class Coverage:
    """Per-source-file coverage accumulated over one run."""

    __slots__ = ("_files", "_log")

    def __init__(self, *, log: structlog.stdlib.BoundLogger | None = None) -> None:
        self._files: dict[str, FileCoverage] = {}
        self._log = log or get_logger(__name__)

    def add(self, record: FileCoverage) -> None:
        """Contribute one record, summing into any existing entry for its path."""
        existing = self._files.get(record.path)
        sources = [record] if existing is None else [existing, record]
        # Stored entries are always fresh objects in canonical (sorted) form
        self._files[record.path] = merge_file_coverage(sources, log=self._log)

    def add_all(self, records: Iterable[FileCoverage]) -> None:
        for record in records:
            self.add(record)

    def get(self, path: str) -> FileCoverage | None:
        return self._files.get(path)

    def paths(self) -> list[str]:
        """Source paths in sorted order."""
        return sorted(self._files)

    def is_empty(self) -> bool:
        return not self._files

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def __iter__(self) -> Iterator[FileCoverage]:
        """Yield records sorted by path."""
        for path in self.paths():
            yield self._files[path]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Coverage):
            return NotImplemented
        return self._files == other._files

    def __repr__(self) -> str:
        return f"Coverage(files={len(self._files)})"

    def _select(self, keep: Iterable[str]) -> Coverage:
        result = Coverage(log=self._log)
        for path in keep:
            result._files[path] = self._files[path].copy()
        return result

    def filter_out_matching(self, substrings: Collection[str]) -> Coverage:
        """Keep only sources whose path contains none of ``substrings``."""
        return self._select(
            path for path in self._files if not any(s in path for s in substrings)
        )

    def only_these_sources(self, allowed: Collection[str]) -> Coverage:
        """Keep only sources whose path is in ``allowed``."""
        return self._select(path for path in self._files if path in allowed)

    @classmethod
    def merge(
        cls,
        *aggregates: Coverage,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> Coverage:
        """Sum several aggregates into a new one."""
        result = cls(log=log)
        for aggregate in aggregates:
            result.add_all(aggregate)
        return result
