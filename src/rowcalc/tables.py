"""Evaluate one formula against every row of a table.

Rows come from a Polars DataFrame whose columns, in order, are the row's
``c1``, ``c2``, ... values.  The formula is parsed once; every row is then
evaluated with its own evaluator and cache.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ProcessPoolExecutor
from functools import lru_cache
from pathlib import Path
from typing import Any
from uuid import uuid4

import polars as pl
from lark import Tree

from rowcalc.formulas import (
    EvaluationResult,
    FormulaParseError,
    evaluate_tree,
    parse_formula,
)
from rowcalc.logging.events import (
    PARSE_ERROR,
    ROW_EVAL_ERROR,
    EventType,
    emit_error,
    emit_info,
    emit_warning,
)


def load_rows_csv(path: Path) -> pl.DataFrame:
    """Read a CSV file; column types are inferred by Polars."""
    return pl.read_csv(path)


def row_values(df: pl.DataFrame) -> list[list[Any]]:
    """Each row of *df* as a list of values in column order."""
    return [list(row) for row in df.iter_rows()]


def format_value(value: Any) -> str:
    """Render a result value as text for the result column.

    Booleans print as ``TRUE``/``FALSE``, floats with up to 15 significant
    digits, range values as a comma-separated list.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        return f"{value:.15g}"
    if isinstance(value, list):
        return ",".join(format_value(v) for v in value)
    return str(value)


@lru_cache(maxsize=32)
def _cached_tree(formula: str) -> Tree:
    return parse_formula(formula)


def _evaluate_row_args(args: tuple) -> EvaluationResult:
    """Top-level picklable function for ProcessPoolExecutor."""
    formula, row = args
    return evaluate_tree(_cached_tree(formula), row)


def evaluate_rows(
    rows: Sequence[Sequence[Any]],
    formula: str,
    max_workers: int = 1,
) -> list[EvaluationResult]:
    """Evaluate *formula* against each row.

    Args:
        rows: Column values per row.
        formula: Formula text, with or without a leading ``=``.
        max_workers: Number of worker processes (1 = sequential).

    Returns:
        One result per row, in row order.

    Raises:
        FormulaParseError: If the formula has invalid syntax.
    """
    tree = parse_formula(formula)
    if max_workers <= 1 or len(rows) < 2:
        return [evaluate_tree(tree, row) for row in rows]

    args_list = [(formula, list(row)) for row in rows]
    chunksize = max(1, len(args_list) // (max_workers * 4))
    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(_evaluate_row_args, args_list, chunksize=chunksize))


def evaluate_frame(
    df: pl.DataFrame,
    formula: str,
    *,
    result_column: str = "result",
    error_column: str = "error",
    max_workers: int = 1,
    batch_id: str | None = None,
) -> pl.DataFrame:
    """Append formula results for every row of *df*.

    The result column holds the rendered value (null for failing rows) and
    the error column holds the error message (null for successful rows).
    Existing columns with the same names are replaced.

    Raises:
        FormulaParseError: If the formula has invalid syntax.
    """
    batch_id = batch_id or uuid4().hex

    emit_info(
        EventType.table_eval_started,
        f"Evaluating formula over {df.height} row(s)",
        {"batch_id": batch_id, "formula": formula, "rows": df.height},
        batch_id=batch_id,
    )

    try:
        results = evaluate_rows(row_values(df), formula, max_workers=max_workers)
    except FormulaParseError as exc:
        emit_error(
            EventType.formula_parse_error,
            str(exc),
            {"batch_id": batch_id, "formula": formula, "position": exc.position},
            error_code=PARSE_ERROR,
            batch_id=batch_id,
        )
        raise

    failed = 0
    for idx, result in enumerate(results):
        if not result.is_error:
            continue
        failed += 1
        emit_warning(
            EventType.formula_row_error,
            f"Row {idx}: {result.error}",
            {
                "batch_id": batch_id,
                "row": idx,
                "error": result.error,
                "kind": result.kind.value if result.kind else None,
            },
            error_code=ROW_EVAL_ERROR,
            batch_id=batch_id,
        )

    emit_info(
        EventType.table_eval_completed,
        f"Formula evaluated: {len(results) - failed} ok, {failed} failed",
        {"batch_id": batch_id, "total": len(results), "ok": len(results) - failed, "failed": failed},
        batch_id=batch_id,
    )

    return df.with_columns(
        pl.Series(
            result_column,
            [None if r.is_error else format_value(r.value) for r in results],
            dtype=pl.Utf8,
        ),
        pl.Series(error_column, [r.error for r in results], dtype=pl.Utf8),
    )
