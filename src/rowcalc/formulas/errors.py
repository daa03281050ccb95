"""Error types for formula parsing and evaluation.

Parsing failures are raised as exceptions.  Evaluation failures are carried
as data inside :class:`~rowcalc.formulas.result.EvaluationResult`, tagged
with an :class:`ErrorKind` and one of the message strings below.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_REFERENCE = "invalid_reference"
    COLUMN_INDEX_OUT_OF_RANGE = "column_index_out_of_range"
    ARITHMETIC_INVALID = "arithmetic_invalid"
    ARITY = "arity"
    UNIMPLEMENTED = "unimplemented"
    INTERNAL_FAILURE = "internal_failure"


# User-facing messages.  These surface in the host UI; keep them stable.
MSG_INVALID_REFERENCE = "invalid reference"
MSG_COLUMN_OUT_OF_RANGE = "column index out of range"
MSG_NOT_IMPLEMENTED = "not implemented"
MSG_AT_LEAST_ONE = "requires at least 1 argument"
MSG_MOD_ARGS = "too many arguments or not numbers"
MSG_ABS_ARGS = "too many arguments or not a number"
MSG_IF_ARGS = "requires 3 arguments"
MSG_IFERROR_ARGS = "requires 2 arguments"


class FormulaError(Exception):
    """Base class for all formula-related exceptions."""


class FormulaParseError(FormulaError):
    """Syntax error in a formula expression.

    Attributes:
        position: Character position where the error was detected.
        message: Human-readable description.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        self.message = message
        full = f"Formula parse error: {message}"
        if position is not None:
            full += f" (at position {position})"
        super().__init__(full)
