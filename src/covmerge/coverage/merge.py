"""Coverage record merging with additive semantics.

Records for the same source file are combined by summing counters keyed by
identity:

- line[n] = sum(line[n] across records)
- branch[(line, block, branch)] = sum(hits), evaluated if any record evaluated it
- function[name] = sum(hits)

Each test run contributes its own hits, so merging the same record twice
doubles its counts. Summation makes the result independent of merge order.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from covmerge.core.logging import get_logger
from covmerge.coverage.models import (
    BranchCoverage,
    FileCoverage,
    FunctionCoverage,
)


def merge_file_coverage(
    files: Iterable[FileCoverage],
    *,
    log: structlog.stdlib.BoundLogger | None = None,
) -> FileCoverage:
    """Merge multiple FileCoverage objects for the same file.

    Conflicting structure (one function name at two start lines) is logged
    as a warning; the earliest start line is kept and hits are still summed.

    Args:
        files: FileCoverage objects to merge (must have same path).
        log: Logger for structural mismatch warnings.

    Returns:
        New FileCoverage with summed counters. Inputs are not modified.

    Raises:
        ValueError: If ``files`` is empty or paths differ.
    """
    files_list = list(files)
    if not files_list:
        raise ValueError("Cannot merge empty file coverage list")

    path = files_list[0].path
    if any(fc.path != path for fc in files_list):
        raise ValueError(f"Cannot merge coverage for different files into {path!r}")

    log = log or get_logger(__name__)

    merged_lines: dict[int, int] = {}
    for fc in files_list:
        for line_num, hits in fc.lines.items():
            merged_lines[line_num] = merged_lines.get(line_num, 0) + hits

    # Keyed by (line, block_id, branch_id) -> (hits, evaluated)
    branch_data: dict[tuple[int, int, int], tuple[int, bool]] = {}
    for fc in files_list:
        for branch in fc.branches:
            hits, evaluated = branch_data.get(branch.key, (0, False))
            branch_data[branch.key] = (hits + branch.hits, evaluated or branch.evaluated)

    merged_branches = [
        BranchCoverage(
            line=line,
            block_id=block_id,
            branch_id=branch_id,
            hits=hits,
            evaluated=evaluated,
        )
        for (line, block_id, branch_id), (hits, evaluated) in sorted(branch_data.items())
    ]

    func_data: dict[str, tuple[int, int]] = {}  # name -> (start_line, total_hits)
    for fc in files_list:
        for name, func in fc.functions.items():
            if name in func_data:
                existing_line, existing_hits = func_data[name]
                if existing_line != func.start_line:
                    log.warning(
                        "merge.function_start_line_mismatch",
                        path=path,
                        function=name,
                        start_lines=sorted({existing_line, func.start_line}),
                    )
                func_data[name] = (
                    min(existing_line, func.start_line),
                    existing_hits + func.hits,
                )
            else:
                func_data[name] = (func.start_line, func.hits)

    merged_functions = {
        name: FunctionCoverage(name=name, start_line=start_line, hits=hits)
        for name, (start_line, hits) in func_data.items()
    }

    return FileCoverage(
        path=path,
        lines=merged_lines,
        branches=merged_branches,
        functions=merged_functions,
    )
