"""Coverage parser protocol and shared record-building helpers."""

from __future__ import annotations

from typing import Protocol, TextIO

from covmerge.core.errors import CoverageParseError
from covmerge.coverage.models import (
    BranchCoverage,
    CoverageFormat,
    FileCoverage,
    FunctionCoverage,
)


class CoverageParser(Protocol):
    """Protocol for coverage format parsers.

    Each parser handles one raw format and converts it to ``FileCoverage``
    records. Which parser runs is decided by the caller from the file
    extension; parsers do no sniffing of their own.
    """

    @property
    def format(self) -> CoverageFormat:
        """The raw format this parser reads."""
        ...

    def parse(self, stream: TextIO) -> list[FileCoverage]:
        """Parse a raw coverage stream into per-source records.

        Returns:
            Records in the order their sources first appear.

        Raises:
            CoverageParseError: If the stream is malformed.
        """
        ...


def parse_int(value: str, *, field: str, line: int) -> int:
    """Parse a numeric field, reporting the input line on failure."""
    try:
        return int(value)
    except ValueError:
        raise CoverageParseError.malformed(f"invalid {field}: {value!r}", line=line) from None


class FileCoverageBuilder:
    """Accumulates one source file's counters while a parser reads its block.

    Repeated entries within a block (template instantiations, duplicated
    records) are summed, the same way separate records are merged.
    """

    __slots__ = ("path", "_lines", "_branches", "_functions")

    def __init__(self, path: str) -> None:
        self.path = path
        self._lines: dict[int, int] = {}
        self._branches: dict[tuple[int, int, int], tuple[int, bool]] = {}
        self._functions: dict[str, tuple[int, int]] = {}

    def add_line(self, line: int, hits: int) -> None:
        self._lines[line] = self._lines.get(line, 0) + hits

    def add_branch(
        self, line: int, block_id: int, branch_id: int, hits: int, evaluated: bool
    ) -> None:
        key = (line, block_id, branch_id)
        prev_hits, prev_evaluated = self._branches.get(key, (0, False))
        self._branches[key] = (prev_hits + hits, prev_evaluated or evaluated)

    def declare_function(self, name: str, start_line: int) -> None:
        if name in self._functions:
            existing_line, hits = self._functions[name]
            # FNDA before FN leaves the start line at 0
            if existing_line == 0:
                self._functions[name] = (start_line, hits)
        else:
            self._functions[name] = (start_line, 0)

    def add_function_hits(self, name: str, hits: int, start_line: int = 0) -> None:
        existing_line, prev_hits = self._functions.get(name, (start_line, 0))
        self._functions[name] = (existing_line or start_line, prev_hits + hits)

    def build(self) -> FileCoverage:
        return FileCoverage(
            path=self.path,
            lines=dict(self._lines),
            branches=[
                BranchCoverage(line=ln, block_id=blk, branch_id=br, hits=hits, evaluated=evaluated)
                for (ln, blk, br), (hits, evaluated) in sorted(self._branches.items())
            ],
            functions={
                name: FunctionCoverage(name=name, start_line=start, hits=hits)
                for name, (start, hits) in self._functions.items()
            },
        )
