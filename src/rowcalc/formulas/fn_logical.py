"""Logical formula functions: AND, OR."""

from __future__ import annotations

from typing import Any

from rowcalc.formulas.errors import MSG_AT_LEAST_ONE, ErrorKind
from rowcalc.formulas.result import EvaluationResult, err, ok


def _fn_and(args: list) -> EvaluationResult:
    """AND(val1, val2, ...) -- TRUE if no argument is falsy."""
    if len(args) < 1:
        return err(ErrorKind.ARITY, MSG_AT_LEAST_ONE)
    return ok(all(bool(a) for a in args))


def _fn_or(args: list) -> EvaluationResult:
    """OR(val1, val2, ...) -- TRUE if any argument is truthy."""
    if len(args) < 1:
        return err(ErrorKind.ARITY, MSG_AT_LEAST_ONE)
    return ok(any(bool(a) for a in args))


LOGICAL_FUNCTIONS: dict[str, Any] = {
    "AND": _fn_and,
    "OR": _fn_or,
}
