"""Post-order driver: walks a parse tree and feeds each node to the evaluator.

Lark's :class:`~lark.Visitor` visits subtrees bottom-up, so every node's
children are in the :class:`ResultCache` by the time the node itself is
visited.  Each callback below handles one node kind, computes the node's
result from its children's cached results and stores it.
"""

from __future__ import annotations

from collections.abc import Sequence

from lark import Tree, Visitor

from rowcalc.formulas.evaluator import (
    ColumnValue,
    FormulaEvaluator,
    OperatorType,
    operator_type,
)
from rowcalc.formulas.errors import MSG_NOT_IMPLEMENTED, ErrorKind
from rowcalc.formulas.parser import (
    parse_boolean,
    parse_formula,
    parse_number,
    parse_string,
)
from rowcalc.formulas.result import EvaluationResult, err


class FormulaVisitor(Visitor):
    """Per-node-kind callbacks that record results in the evaluator's cache."""

    def __init__(self, evaluator: FormulaEvaluator) -> None:
        self.evaluator = evaluator
        self.cache = evaluator.cache

    def _store(self, tree: Tree, result: EvaluationResult) -> None:
        self.cache.set(tree, result)

    def start(self, tree: Tree) -> None:
        self._store(tree, self.cache.get(tree.children[0]))

    # Literals

    def number(self, tree: Tree) -> None:
        self._store(tree, self.evaluator.eval_literal(parse_number(tree.children[0])))

    def string(self, tree: Tree) -> None:
        self._store(tree, self.evaluator.eval_literal(parse_string(tree.children[0])))

    def boolean(self, tree: Tree) -> None:
        self._store(tree, self.evaluator.eval_literal(parse_boolean(tree.children[0])))

    # References

    def cell_ref(self, tree: Tree) -> None:
        self._store(tree, self.evaluator.resolve_column_value(str(tree.children[0])))

    def cell_range(self, tree: Tree) -> None:
        start, end = tree.children
        self._store(tree, self.evaluator.resolve_range(str(start), str(end)))

    # Operators

    def binary(self, tree: Tree) -> None:
        left, op, right = tree.children
        op = str(op)
        left_result = self.cache.get(left)
        right_result = self.cache.get(right)
        kind = operator_type(op)
        if kind is OperatorType.MATH:
            result = self.evaluator.eval_binary(op, left_result, right_result)
        elif kind is OperatorType.COMPARISON:
            result = self.evaluator.eval_comparison(op, left_result, right_result)
        else:
            result = err(ErrorKind.UNIMPLEMENTED, MSG_NOT_IMPLEMENTED)
        self._store(tree, result)

    def comparison(self, tree: Tree) -> None:
        left, op, right = tree.children
        self._store(
            tree,
            self.evaluator.eval_comparison(str(op), self.cache.get(left), self.cache.get(right)),
        )

    def unary(self, tree: Tree) -> None:
        op, operand = tree.children
        self._store(tree, self.evaluator.eval_unary(str(op), self.cache.get(operand)))

    # Functions

    def func_call(self, tree: Tree) -> None:
        name, args = tree.children
        self._store(tree, self.evaluator.eval_function(str(name), args.children))


def evaluate_tree(tree: Tree, columns: Sequence[ColumnValue]) -> EvaluationResult:
    """Evaluate a parsed formula against one row.

    A new evaluator and cache are created for every call, so the same tree
    can be evaluated repeatedly (or from several threads) against different
    rows.
    """
    evaluator = FormulaEvaluator(columns)
    FormulaVisitor(evaluator).visit(tree)
    return evaluator.cache.get(tree)


def evaluate(columns: Sequence[ColumnValue], formula: str) -> EvaluationResult:
    """Parse *formula* and evaluate it against *columns*.

    Raises:
        FormulaParseError: If the formula has invalid syntax.
    """
    return evaluate_tree(parse_formula(formula), columns)
