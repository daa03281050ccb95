"""Spreadsheet formula parsing and evaluation against a row of columns.

Public API::

    from rowcalc.formulas import evaluate, parse_formula, evaluate_tree
"""

from rowcalc.formulas.driver import FormulaVisitor, evaluate, evaluate_tree
from rowcalc.formulas.errors import ErrorKind, FormulaError, FormulaParseError
from rowcalc.formulas.evaluator import FormulaEvaluator, OperatorType, operator_type
from rowcalc.formulas.parser import NodeKind, extract_cell_refs, parse_formula
from rowcalc.formulas.result import EvaluationResult, ResultCache, err, ok

__all__ = [
    "ErrorKind",
    "EvaluationResult",
    "FormulaError",
    "FormulaEvaluator",
    "FormulaParseError",
    "FormulaVisitor",
    "NodeKind",
    "OperatorType",
    "ResultCache",
    "err",
    "evaluate",
    "evaluate_tree",
    "extract_cell_refs",
    "ok",
    "operator_type",
    "parse_formula",
]
