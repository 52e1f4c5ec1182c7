"""LCOV tracefile parser.

LCOV format is a plain text format with records like:
- TN:<test name>
- SF:<source file path>
- FN:<line>,<name>  (lcov 2.x: FN:<line>,<end line>,<name>)
- FNDA:<hit count>,<name>
- DA:<line>,<hit count>[,<checksum>]
- BRDA:<line>,<block>,<branch>,<taken|->
- BA:<line>,<0|1|2>  (gcov-style branch: not evaluated / not taken / taken)
- LF/LH/FNF/FNH/BRF/BRH:<count>  (summaries, recomputed on output)
- end_of_record

Used by: bazel tracefiles (.dat), geninfo, pytest-cov, cargo-llvm-cov
"""

from __future__ import annotations

from typing import TextIO

from covmerge.core.errors import CoverageParseError
from covmerge.coverage.merge import merge_file_coverage
from covmerge.coverage.models import CoverageFormat, FileCoverage
from covmerge.coverage.parsers.base import FileCoverageBuilder, parse_int

_SUMMARY_PREFIXES = ("LF:", "LH:", "FNF:", "FNH:", "BRF:", "BRH:")


class LcovParser:
    """Parser for LCOV tracefiles."""

    @property
    def format(self) -> CoverageFormat:
        return CoverageFormat.TRACEFILE

    def parse(self, stream: TextIO) -> list[FileCoverage]:
        """Parse an LCOV stream into per-source records."""
        records: dict[str, FileCoverage] = {}
        current: FileCoverageBuilder | None = None
        # BA records carry no branch number; count them per line
        ba_counts: dict[int, int] = {}

        def finish(builder: FileCoverageBuilder) -> None:
            record = builder.build()
            if record.path in records:
                records[record.path] = merge_file_coverage([records[record.path], record])
            else:
                records[record.path] = record

        def require(lineno: int, tag: str) -> FileCoverageBuilder:
            if current is None:
                raise CoverageParseError.malformed(f"{tag} record outside of SF block", line=lineno)
            return current

        for lineno, raw in enumerate(stream, start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            if line.startswith("SF:"):
                if current is not None:
                    finish(current)
                path = line[3:]
                if not path:
                    raise CoverageParseError.malformed("empty SF path", line=lineno)
                current = FileCoverageBuilder(path)
                ba_counts = {}

            elif line.startswith("DA:"):
                builder = require(lineno, "DA")
                parts = line[3:].split(",")
                if len(parts) < 2:
                    raise CoverageParseError.malformed(f"bad DA record: {line!r}", line=lineno)
                line_num = parse_int(parts[0], field="line number", line=lineno)
                # Some tools write '-' for an unexecuted line
                hits = 0 if parts[1] == "-" else parse_int(parts[1], field="hit count", line=lineno)
                builder.add_line(line_num, hits)

            elif line.startswith("BRDA:"):
                builder = require(lineno, "BRDA")
                parts = line[5:].split(",")
                if len(parts) != 4:
                    raise CoverageParseError.malformed(f"bad BRDA record: {line!r}", line=lineno)
                line_num = parse_int(parts[0], field="line number", line=lineno)
                block_id = parse_int(parts[1], field="block id", line=lineno)
                branch_id = parse_int(parts[2], field="branch id", line=lineno)
                if parts[3] == "-":
                    builder.add_branch(line_num, block_id, branch_id, 0, evaluated=False)
                else:
                    taken = parse_int(parts[3], field="taken count", line=lineno)
                    builder.add_branch(line_num, block_id, branch_id, taken, evaluated=True)

            elif line.startswith("BA:"):
                builder = require(lineno, "BA")
                parts = line[3:].split(",")
                if len(parts) != 2:
                    raise CoverageParseError.malformed(f"bad BA record: {line!r}", line=lineno)
                line_num = parse_int(parts[0], field="line number", line=lineno)
                state = parse_int(parts[1], field="branch state", line=lineno)
                if state not in (0, 1, 2):
                    raise CoverageParseError.malformed(f"bad BA branch state: {state}", line=lineno)
                branch_id = ba_counts.get(line_num, 0)
                ba_counts[line_num] = branch_id + 1
                hits = 1 if state == 2 else 0
                builder.add_branch(line_num, 0, branch_id, hits, evaluated=state > 0)

            elif line.startswith("FN:"):
                builder = require(lineno, "FN")
                parts = line[3:].split(",", 2)
                if len(parts) == 3 and parts[1].isdigit():
                    start, name = parts[0], parts[2]
                else:
                    parts = line[3:].split(",", 1)
                    if len(parts) != 2:
                        raise CoverageParseError.malformed(f"bad FN record: {line!r}", line=lineno)
                    start, name = parts
                builder.declare_function(name, parse_int(start, field="function line", line=lineno))

            elif line.startswith("FNDA:"):
                builder = require(lineno, "FNDA")
                parts = line[5:].split(",", 1)
                if len(parts) != 2:
                    raise CoverageParseError.malformed(f"bad FNDA record: {line!r}", line=lineno)
                hits = parse_int(parts[0], field="function hit count", line=lineno)
                builder.add_function_hits(parts[1], hits)

            elif line.startswith(_SUMMARY_PREFIXES):
                require(lineno, line.split(":", 1)[0])
                parse_int(line.split(":", 1)[1], field="summary count", line=lineno)

            elif line == "end_of_record":
                builder = require(lineno, "end_of_record")
                finish(builder)
                current = None

            # TN:, VER: and other records carry nothing we merge

        # Handle file without trailing end_of_record
        if current is not None:
            finish(current)

        return list(records.values())
