"""gcov intermediate text format parser.

Produced by ``gcov -i`` (gcc < 9). One file may describe several sources:

    version:<gcc version>
    file:<source file path>
    function:<line>,<execution count>,<name>
    function:<start line>,<end line>,<execution count>,<name>
    lcount:<line>,<execution count>[,<has unexecuted block>]
    branch:<line>,<taken|nottaken|notexec>

Branches carry no identifiers. They are numbered in order per line, and the
numbering restarts at every ``lcount`` so that repeated template instances of
the same line land on the same branch ids.
"""

from __future__ import annotations

import re
from typing import TextIO

from covmerge.core.errors import CoverageParseError
from covmerge.coverage.merge import merge_file_coverage
from covmerge.coverage.models import CoverageFormat, FileCoverage
from covmerge.coverage.parsers.base import FileCoverageBuilder, parse_int

_FUNCTION_WITH_END = re.compile(r"^(\d+),(\d+),(\d+),(.+)$")
_FUNCTION = re.compile(r"^(\d+),(\d+),(.+)$")
_BRANCH_STATES = {
    "taken": (1, True),
    "nottaken": (0, True),
    "notexec": (0, False),
}


class GcovParser:
    """Parser for gcov intermediate text files."""

    @property
    def format(self) -> CoverageFormat:
        return CoverageFormat.GCOV_INFO

    def parse(self, stream: TextIO) -> list[FileCoverage]:
        """Parse a gcov intermediate stream into per-source records."""
        records: dict[str, FileCoverage] = {}
        current: FileCoverageBuilder | None = None
        branch_num = 0

        def finish(builder: FileCoverageBuilder) -> None:
            record = builder.build()
            if record.path in records:
                records[record.path] = merge_file_coverage([records[record.path], record])
            else:
                records[record.path] = record

        for lineno, raw in enumerate(stream, start=1):
            line = raw.strip()
            if not line:
                continue

            tag, sep, rest = line.partition(":")
            if not sep:
                raise CoverageParseError.malformed(f"unrecognized line: {line!r}", line=lineno)

            if tag == "version":
                continue

            if tag == "file":
                if current is not None:
                    finish(current)
                if not rest:
                    raise CoverageParseError.malformed("empty file path", line=lineno)
                current = FileCoverageBuilder(rest)
                branch_num = 0
                continue

            if current is None:
                raise CoverageParseError.malformed(
                    f"{tag} record before any file record", line=lineno
                )

            if tag == "lcount":
                parts = rest.split(",")
                if len(parts) < 2:
                    raise CoverageParseError.malformed(f"bad lcount record: {line!r}", line=lineno)
                current.add_line(
                    parse_int(parts[0], field="line number", line=lineno),
                    parse_int(parts[1], field="execution count", line=lineno),
                )
                branch_num = 0

            elif tag == "branch":
                parts = rest.split(",")
                if len(parts) != 2 or parts[1] not in _BRANCH_STATES:
                    raise CoverageParseError.malformed(f"bad branch record: {line!r}", line=lineno)
                hits, evaluated = _BRANCH_STATES[parts[1]]
                line_num = parse_int(parts[0], field="line number", line=lineno)
                current.add_branch(line_num, 0, branch_num, hits, evaluated)
                branch_num += 1

            elif tag == "function":
                match = _FUNCTION_WITH_END.match(rest)
                if match:
                    start, _end, count, name = match.groups()
                else:
                    match = _FUNCTION.match(rest)
                    if not match:
                        raise CoverageParseError.malformed(
                            f"bad function record: {line!r}", line=lineno
                        )
                    start, count, name = match.groups()
                current.add_function_hits(name, int(count), start_line=int(start))

            else:
                raise CoverageParseError.malformed(f"unknown record type: {tag!r}", line=lineno)

        if current is not None:
            finish(current)

        return list(records.values())
