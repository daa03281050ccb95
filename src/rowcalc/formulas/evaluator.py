"""Per-node evaluation of parsed formulas against one row of column values.

:class:`FormulaEvaluator` never walks the tree itself.  The driver visits
nodes children-first and, for each node, hands the evaluator the results of
the node's children (already stored in the shared :class:`ResultCache`).
Every operation returns an :class:`EvaluationResult`; errors are values and
short-circuit the node that receives them.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from enum import Enum
from typing import Any

from rowcalc.formulas.arithmetic import (
    COMPARISON_OPERATORS,
    MATH_OPERATORS,
    apply_math,
    check_number,
    compare,
    is_number,
)
from rowcalc.formulas.errors import (
    MSG_COLUMN_OUT_OF_RANGE,
    MSG_INVALID_REFERENCE,
    MSG_NOT_IMPLEMENTED,
    ErrorKind,
)
from rowcalc.formulas.fn_aggregate import AGGREGATE_FUNCTIONS
from rowcalc.formulas.fn_conditional import (
    CONDITIONAL_FUNCTIONS,
    CONDITIONAL_LAZY_FUNCTIONS,
)
from rowcalc.formulas.fn_logical import LOGICAL_FUNCTIONS
from rowcalc.formulas.result import EvaluationResult, ResultCache, err, ok
from rowcalc.logging.events import (
    FUNCTION_INTERNAL_FAILURE,
    EventType,
    emit_warning,
)

ColumnValue = int | float | str | bool

# "c" or "C", then the 1-based column number.  Anything after the leading
# digits is ignored, so only the start of the token has to match.
CELL_KEY_RE = re.compile(r"^[cC]([0-9]+)")


class OperatorType(str, Enum):
    UNSUPPORTED = "unsupported"
    MATH = "math"
    COMPARISON = "comparison"


def operator_type(op: str) -> OperatorType:
    """Classify a binary operator symbol."""
    if op in MATH_OPERATORS:
        return OperatorType.MATH
    if op in COMPARISON_OPERATORS:
        return OperatorType.COMPARISON
    return OperatorType.UNSUPPORTED


_FUNC_TABLE: dict[str, Any] = {
    **AGGREGATE_FUNCTIONS,
    **LOGICAL_FUNCTIONS,
    **CONDITIONAL_FUNCTIONS,
}

_LAZY_FUNCTIONS = CONDITIONAL_LAZY_FUNCTIONS


def _unimplemented() -> EvaluationResult:
    return err(ErrorKind.UNIMPLEMENTED, MSG_NOT_IMPLEMENTED)


def _flatten_args(args: list) -> list:
    """Flatten one level of lists in argument list."""
    result = []
    for a in args:
        if isinstance(a, list):
            result.extend(a)
        else:
            result.append(a)
    return result


class FormulaEvaluator:
    """Evaluates formula nodes for a single row.

    Args:
        columns: The row's column values, in column order.  Read only.
        cache: Results of already-evaluated nodes.  A fresh cache is
            created when omitted; one evaluator and one cache serve exactly
            one evaluation.
    """

    def __init__(
        self,
        columns: Sequence[ColumnValue],
        cache: ResultCache | None = None,
    ) -> None:
        self.columns = columns
        self.cache = cache if cache is not None else ResultCache()

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def resolve_column_index(self, ref: str) -> EvaluationResult:
        """Resolve ``c<N>`` to the 0-based column index ``N - 1``."""
        m = CELL_KEY_RE.match(ref)
        if m is None:
            return err(ErrorKind.INVALID_REFERENCE, MSG_INVALID_REFERENCE)
        digits = m.group(1).lstrip("0") or "0"
        # A column number longer than the row's column count cannot be in range.
        if len(digits) > len(str(len(self.columns))):
            return err(ErrorKind.COLUMN_INDEX_OUT_OF_RANGE, MSG_COLUMN_OUT_OF_RANGE)
        index = int(digits) - 1
        if index < 0 or index >= len(self.columns):
            return err(ErrorKind.COLUMN_INDEX_OUT_OF_RANGE, MSG_COLUMN_OUT_OF_RANGE)
        return ok(index)

    def resolve_column_value(self, ref: str) -> EvaluationResult:
        result = self.resolve_column_index(ref)
        if result.is_error:
            return result
        return ok(self.columns[result.value])

    def resolve_range(self, start_ref: str, end_ref: str) -> EvaluationResult:
        """Values from *start_ref* through *end_ref* inclusive.

        A range whose end precedes its start is empty.
        """
        start = self.resolve_column_index(start_ref)
        if start.is_error:
            return start
        end = self.resolve_column_index(end_ref)
        if end.is_error:
            return end
        return ok(list(self.columns[start.value:end.value + 1]))

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def eval_literal(self, value: ColumnValue) -> EvaluationResult:
        if is_number(value):
            return check_number(value)
        return ok(value)

    def eval_binary(
        self,
        op: str,
        left: EvaluationResult,
        right: EvaluationResult,
    ) -> EvaluationResult:
        """Apply an arithmetic operator to two operand results."""
        if left.is_error:
            return left
        if right.is_error:
            return right
        a, b = left.value, right.value
        if not (is_number(a) and is_number(b)):
            # String/date arithmetic is not supported.
            return _unimplemented()
        value = apply_math(op, a, b)
        if value is None:
            return _unimplemented()
        return check_number(value)

    def eval_comparison(
        self,
        op: str,
        left: EvaluationResult,
        right: EvaluationResult,
    ) -> EvaluationResult:
        """Compare two numeric operand results."""
        if left.is_error:
            return left
        if right.is_error:
            return right
        a, b = left.value, right.value
        if not (is_number(a) and is_number(b)):
            return _unimplemented()
        value = compare(op, a, b)
        if value is None:
            return _unimplemented()
        return ok(value)

    def eval_unary(self, op: str, operand: EvaluationResult) -> EvaluationResult:
        if operand.is_error:
            return operand
        a = operand.value
        if not is_number(a):
            return _unimplemented()
        if op == "+":
            return ok(a)
        if op == "-":
            return ok(-a)
        return _unimplemented()

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def gather_args(self, arg_nodes: Sequence[Any]) -> list:
        """Cached values of *arg_nodes*, in order.

        If any argument evaluated to an error the whole list is empty: the
        function then sees no arguments instead of the error.
        """
        args = []
        for node in arg_nodes:
            result = self.cache.get(node)
            if result.is_error:
                return []
            args.append(result.value)
        return args

    def eval_function(self, name: str, arg_nodes: Sequence[Any]) -> EvaluationResult:
        """Apply the named function to its argument nodes.

        Any exception raised inside a function becomes an
        ``INTERNAL_FAILURE`` result carrying the exception text.
        """
        func_name = name.upper()
        try:
            # Lazy functions read their argument nodes from the cache
            if func_name in _LAZY_FUNCTIONS:
                return _FUNC_TABLE[func_name](list(arg_nodes), self.cache)

            func = _FUNC_TABLE.get(func_name)
            if func is None:
                return _unimplemented()
            return func(_flatten_args(self.gather_args(arg_nodes)))
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            emit_warning(
                EventType.function_failure,
                f"{func_name} failed: {message}",
                {"function": func_name, "exception": type(exc).__name__},
                error_code=FUNCTION_INTERNAL_FAILURE,
            )
            return err(ErrorKind.INTERNAL_FAILURE, message)
