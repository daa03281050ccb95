"""Conditional formula functions: IF, IFERROR.

These are lazy functions: they receive the argument nodes and read the
cached result of each one, so the branch that is not chosen cannot affect
the outcome even though the driver has already evaluated it.
"""

from __future__ import annotations

from typing import Any

from rowcalc.formulas.errors import MSG_IF_ARGS, MSG_IFERROR_ARGS, ErrorKind
from rowcalc.formulas.result import EvaluationResult, ResultCache, err, ok


def _fn_if(arg_nodes: list, cache: ResultCache) -> EvaluationResult:
    """IF(condition, then_value, else_value)."""
    if len(arg_nodes) != 3:
        return err(ErrorKind.ARITY, MSG_IF_ARGS)
    condition = cache.get(arg_nodes[0])
    if not condition.is_error and condition.value:
        return cache.get(arg_nodes[1])
    return cache.get(arg_nodes[2])


def _fn_iferror(arg_nodes: list, cache: ResultCache) -> EvaluationResult:
    """IFERROR(value, fallback) -- fallback's result when value is an error."""
    if len(arg_nodes) != 2:
        return err(ErrorKind.ARITY, MSG_IFERROR_ARGS)
    result = cache.get(arg_nodes[0])
    if result.is_error:
        return cache.get(arg_nodes[1])
    return ok(result.value)


CONDITIONAL_FUNCTIONS: dict[str, Any] = {
    "IF": _fn_if,
    "IFERROR": _fn_iferror,
}

CONDITIONAL_LAZY_FUNCTIONS: set[str] = {"IF", "IFERROR"}
