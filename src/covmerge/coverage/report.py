"""LCOV report emission.

Output layout per source file (sources sorted by path):

    SF:<path>
    FN:<line>,<name>
    FNDA:<hits>,<name>
    FNF:<functions found>
    FNH:<functions hit>
    BRDA:<line>,<block>,<branch>,<hits or ->
    BRF:<branches found>
    BRH:<branches hit>
    DA:<line>,<hits>
    LH:<lines hit>
    LF:<lines found>
    end_of_record
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import TextIO

from covmerge.core.errors import OutputWriteError
from covmerge.coverage.aggregate import Coverage
from covmerge.coverage.models import FileCoverage


def _write_record(stream: TextIO, fc: FileCoverage) -> None:
    stream.write(f"SF:{fc.path}\n")

    functions = sorted(fc.functions.values(), key=lambda f: (f.start_line, f.name))
    for func in functions:
        stream.write(f"FN:{func.start_line},{func.name}\n")
    for func in functions:
        stream.write(f"FNDA:{func.hits},{func.name}\n")
    stream.write(f"FNF:{fc.functions_found}\n")
    stream.write(f"FNH:{fc.functions_hit}\n")

    for branch in sorted(fc.branches, key=lambda b: b.key):
        taken = str(branch.hits) if branch.evaluated else "-"
        stream.write(f"BRDA:{branch.line},{branch.block_id},{branch.branch_id},{taken}\n")
    stream.write(f"BRF:{fc.branches_found}\n")
    stream.write(f"BRH:{fc.branches_hit}\n")

    for line_num in sorted(fc.lines):
        stream.write(f"DA:{line_num},{fc.lines[line_num]}\n")
    stream.write(f"LH:{fc.lines_hit}\n")
    stream.write(f"LF:{fc.lines_found}\n")
    stream.write("end_of_record\n")


def write_lcov(stream: TextIO, coverage: Coverage) -> None:
    """Serialize ``coverage`` as an LCOV tracefile to ``stream``."""
    for fc in coverage:
        _write_record(stream, fc)


def write_report(output_file: Path, coverage: Coverage) -> None:
    """Write ``coverage`` to ``output_file``.

    The report is written to a temporary sibling and moved into place, so a
    failure never leaves a partial report behind.

    Raises:
        OutputWriteError: If the file cannot be written.
    """
    tmp_name: str | None = None
    try:
        parent = output_file.parent
        parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{output_file.name}.", dir=parent)
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as stream:
            write_lcov(stream, coverage)
        os.replace(tmp_name, output_file)
        tmp_name = None
    except OSError as e:
        raise OutputWriteError.write_failed(str(output_file), e.strerror or str(e)) from e
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)


def build_text_summary(coverage: Coverage) -> str:
    """Build a concise text summary for log output."""
    total_lines = sum(fc.lines_found for fc in coverage)
    covered_lines = sum(fc.lines_hit for fc in coverage)

    if total_lines == 0:
        return "No coverage data"

    percent = covered_lines / total_lines * 100.0

    return (
        f"Coverage: {percent:.1f}% ({covered_lines}/{total_lines} lines) "
        f"across {len(coverage)} files"
    )
