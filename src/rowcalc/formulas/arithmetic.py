"""Numeric operator semantics shared by operators and functions.

Spreadsheet numbers behave like IEEE doubles: dividing by zero gives an
infinity rather than raising, ``x % 0`` is NaN, and overflow saturates to
infinity.  Those values are never handed back to the user; ``check_number``
turns them into an ``ARITHMETIC_INVALID`` error naming the value.
"""

from __future__ import annotations

import math
import sys
from typing import Any

from rowcalc.formulas.errors import ErrorKind
from rowcalc.formulas.result import EvaluationResult, err, ok

MATH_OPERATORS = ("+", "-", "*", "/", "^", "%")
COMPARISON_OPERATORS = ("=", "<>", ">", "<", ">=", "<=")


def is_number(value: Any) -> bool:
    """``True`` for int/float values.  Booleans are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def as_float(value: float) -> float:
    """*value* as a float; integers past the float range become infinities."""
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def _sign(value: float) -> int:
    return -1 if value < 0 else 1


def divide(x: float, y: float) -> float:
    if y == 0:
        if x == 0 or (isinstance(x, float) and math.isnan(x)):
            return math.nan
        return _sign(x) * math.copysign(math.inf, y)
    return x / y


def remainder(x: float, y: float) -> float:
    """Truncated remainder: the result takes the sign of the dividend."""
    if y == 0:
        return math.nan
    if isinstance(x, int) and isinstance(y, int):
        r = abs(x) % abs(y)
        return r if x >= 0 else -r
    try:
        return math.fmod(x, y)
    except ValueError:
        # fmod(inf, y)
        return math.nan


def power(x: float, y: float) -> float:
    if isinstance(x, int) and isinstance(y, int) and y > 0 and abs(x) > 1:
        # Refuse to build integers that no double could hold.
        if math.log2(abs(x)) > sys.float_info.max_exp / y:
            return math.inf if x > 0 or y % 2 == 0 else -math.inf
    try:
        value = x ** y
    except ZeroDivisionError:
        # 0 ** negative
        return math.inf
    except OverflowError:
        return _float_power(as_float(x), as_float(y))
    if isinstance(value, complex):
        # negative base with a fractional exponent
        return math.nan
    return value


def _float_power(x: float, y: float) -> float:
    try:
        value = x ** y
    except ZeroDivisionError:
        return math.inf
    except OverflowError:
        # finite float overflow; negative base only stays negative for odd y
        return -math.inf if x < 0 and y % 2 == 1 else math.inf
    if isinstance(value, complex):
        return math.nan
    return value


_OPERATIONS = {
    "+": lambda x, y: x + y,
    "-": lambda x, y: x - y,
    "*": lambda x, y: x * y,
    "/": divide,
    "^": power,
    "%": remainder,
}


def apply_math(op: str, x: float, y: float) -> float | None:
    """Apply arithmetic operator *op*, or return ``None`` for an unknown one.

    Integer operands too large for a float take part as infinities, the
    way every number beyond the double range does.
    """
    fn = _OPERATIONS.get(op)
    if fn is None:
        return None
    try:
        value = fn(x, y)
    except OverflowError:
        if isinstance(x, int) and isinstance(y, int):
            # int / int whose exact quotient no float can hold
            return _sign(x) * _sign(y) * math.inf
        value = fn(as_float(x), as_float(y))
    if isinstance(value, int):
        try:
            float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    return value


def compare(op: str, x: float, y: float) -> bool | None:
    """Apply comparison operator *op*, or return ``None`` for an unknown one."""
    if op == "=":
        return x == y
    if op == "<>":
        return x != y
    if op == ">":
        return x > y
    if op == "<":
        return x < y
    if op == ">=":
        return x >= y
    if op == "<=":
        return x <= y
    return None


def invalid_number_text(value: Any) -> str | None:
    """Spreadsheet spelling of an infinite/NaN float, or ``None`` if finite."""
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
    return None


def check_number(value: float) -> EvaluationResult:
    """Wrap a computed number, rejecting infinities and NaN.

    The error message is the offending value in single quotes, e.g.
    ``'Infinity'``.
    """
    text = invalid_number_text(value)
    if text is not None:
        return err(ErrorKind.ARITHMETIC_INVALID, f"'{text}'")
    return ok(value)
