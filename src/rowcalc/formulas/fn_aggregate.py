"""Aggregate formula functions: SUM, AVG, MOD, ABS, MIN, MAX, COUNT.

Each function receives the gathered, flattened argument values.  Except for
COUNT and ABS they ignore arguments that are not numbers.
"""

from __future__ import annotations

from typing import Any

from rowcalc.formulas.arithmetic import check_number, is_number, remainder
from rowcalc.formulas.errors import (
    MSG_ABS_ARGS,
    MSG_AT_LEAST_ONE,
    MSG_MOD_ARGS,
    ErrorKind,
)
from rowcalc.formulas.result import EvaluationResult, err, ok


def _numbers(args: list) -> list:
    return [a for a in args if is_number(a)]


def _fn_sum(args: list) -> EvaluationResult:
    """SUM(val1, ...) -- sum of the numeric arguments, 0 when there are none."""
    return ok(sum(_numbers(args)))


def _fn_avg(args: list) -> EvaluationResult:
    """AVG(val1, ...) -- arithmetic mean of the numeric arguments."""
    nums = _numbers(args)
    if len(nums) < 1:
        return err(ErrorKind.ARITY, MSG_AT_LEAST_ONE)
    return ok(sum(nums) / len(nums))


def _fn_mod(args: list) -> EvaluationResult:
    """MOD(a, b) -- remainder of the first two numeric arguments."""
    nums = _numbers(args)
    if len(nums) > 2:
        return err(ErrorKind.ARITY, MSG_MOD_ARGS)
    return check_number(remainder(nums[0], nums[1]))


def _fn_abs(args: list) -> EvaluationResult:
    """ABS(val) -- absolute value of the first argument."""
    if len(args) > 1 and not is_number(args[0]):
        return err(ErrorKind.ARITY, MSG_ABS_ARGS)
    return ok(abs(args[0]))


def _fn_min(args: list) -> EvaluationResult:
    nums = _numbers(args)
    if len(nums) < 1:
        return err(ErrorKind.ARITY, MSG_AT_LEAST_ONE)
    return ok(min(nums))


def _fn_max(args: list) -> EvaluationResult:
    nums = _numbers(args)
    if len(nums) < 1:
        return err(ErrorKind.ARITY, MSG_AT_LEAST_ONE)
    return ok(max(nums))


def _fn_count(args: list) -> EvaluationResult:
    """COUNT(val1, ...) -- number of arguments of any type."""
    return ok(len(args))


AGGREGATE_FUNCTIONS: dict[str, Any] = {
    "SUM": _fn_sum,
    "AVG": _fn_avg,
    "MOD": _fn_mod,
    "ABS": _fn_abs,
    "MIN": _fn_min,
    "MAX": _fn_max,
    "COUNT": _fn_count,
}
