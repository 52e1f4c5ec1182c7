"""Unified coverage data model.

File-centric model: every supported raw format converts to ``FileCoverage``
records keyed by source path. Counters are raw hit counts, not rates, so
records from different runs and formats can be summed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class CoverageFormat(Enum):
    """Raw coverage formats, identified by file extension."""

    TRACEFILE = ".dat"
    GCOV_INFO = ".gcov"
    PROFDATA = ".profdata"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def ingestible(self) -> bool:
        """Whether records can be parsed out of this format."""
        return self is not CoverageFormat.PROFDATA


@dataclass(frozen=True, slots=True)
class RawCoverageFile:
    """A discovered coverage artifact awaiting dispatch."""

    path: Path
    format: CoverageFormat


@dataclass(frozen=True, slots=True)
class BranchCoverage:
    """Branch coverage at a specific line.

    ``evaluated`` is False when the branch's condition was never reached
    (lcov ``-``, gcov ``notexec``), which is distinct from reached-but-not-taken.
    """

    line: int
    block_id: int
    branch_id: int
    hits: int
    evaluated: bool = True

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.line, self.block_id, self.branch_id)


@dataclass(frozen=True, slots=True)
class FunctionCoverage:
    """Function/method coverage."""

    name: str
    start_line: int
    hits: int


@dataclass(slots=True)
class FileCoverage:
    """Coverage data for a single source file.

    Lines are stored as a dict mapping line number → hit count.
    Line numbers are 1-based to match source file conventions.
    """

    path: str
    lines: dict[int, int] = field(default_factory=dict)  # line_number → hit_count
    branches: list[BranchCoverage] = field(default_factory=list)
    functions: dict[str, FunctionCoverage] = field(default_factory=dict)  # name → coverage

    @property
    def lines_found(self) -> int:
        """Total number of instrumented lines."""
        return len(self.lines)

    @property
    def lines_hit(self) -> int:
        """Number of lines with at least one hit."""
        return sum(1 for hits in self.lines.values() if hits > 0)

    @property
    def branches_found(self) -> int:
        return len(self.branches)

    @property
    def branches_hit(self) -> int:
        """Number of branches taken at least once."""
        return sum(1 for b in self.branches if b.hits > 0)

    @property
    def functions_found(self) -> int:
        return len(self.functions)

    @property
    def functions_hit(self) -> int:
        """Number of functions called at least once."""
        return sum(1 for f in self.functions.values() if f.hits > 0)

    def copy(self) -> FileCoverage:
        return FileCoverage(
            path=self.path,
            lines=dict(self.lines),
            branches=list(self.branches),
            functions=dict(self.functions),
        )
