"""Lark-based parser for spreadsheet row formulas.

Supports:
- Column references: ``c1``, ``C12`` (any 1-3 letter + digits token parses;
  only the ``c``/``C`` form resolves at evaluation time)
- Column ranges: ``c1:c4``
- Arithmetic ``+ - * / % ^``, comparisons, unary plus/minus
- Function calls, number/string/boolean literals
"""

from __future__ import annotations

from enum import Enum

from lark import Lark, Token, Tree, Visitor
from lark.exceptions import LarkError

from rowcalc.formulas.errors import FormulaParseError

# LALR(1) grammar.
# Operator precedence (lowest to highest):
#   1. Comparison: > < >= <= = <>
#   2. Addition/subtraction: + -
#   3. Multiplication/division/remainder: * / %
#   4. Unary plus/minus: + -
#   5. Exponentiation: ^ (right-associative)
#   6. Atoms: number, bool, string, function call, reference, parenthesized expr
GRAMMAR = r"""
start: expr

?expr: compare_expr

?compare_expr: sum_expr
    | compare_expr COMP_OP sum_expr     -> comparison

?sum_expr: product_expr
    | sum_expr ADD_OP product_expr      -> binary

?product_expr: unary_expr
    | product_expr MUL_OP unary_expr    -> binary

?unary_expr: power_expr
    | ADD_OP unary_expr                 -> unary

?power_expr: atom
    | atom POW_OP unary_expr            -> binary

?atom: NUMBER                   -> number
    | STRING                    -> string
    | BOOL                      -> boolean
    | NAME "(" args ")"         -> func_call
    | CELL_REF ":" CELL_REF     -> cell_range
    | CELL_REF                  -> cell_ref
    | "(" expr ")"

args: expr ("," expr)*
    |

COMP_OP: ">=" | "<=" | "<>" | ">" | "<" | "="
ADD_OP: "+" | "-"
MUL_OP: "*" | "/" | "%"
POW_OP: "^"

BOOL.3: /TRUE|FALSE/i

// Column reference: c1, C12 (letters + digits; validated during evaluation)
CELL_REF.2: /[A-Za-z]{1,3}[0-9]+/

NAME.1: /[A-Za-z_][A-Za-z0-9_.]*/

// Double-quoted, "" escapes a quote
STRING: /"([^"]|"")*"/

%import common.NUMBER
%import common.WS
%ignore WS
"""

_parser = Lark(GRAMMAR, parser="lalr", start="start")


class NodeKind(str, Enum):
    """Rule names of the nodes the parser produces."""

    START = "start"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    CELL_REF = "cell_ref"
    CELL_RANGE = "cell_range"
    BINARY = "binary"
    COMPARISON = "comparison"
    UNARY = "unary"
    FUNC_CALL = "func_call"


def parse_formula(text: str) -> Tree:
    """Parse a formula string into a Lark Tree.

    A leading ``=`` is optional: ``"=c1+c2"`` and ``"c1+c2"`` parse the same.

    Raises:
        FormulaParseError: If the formula has invalid syntax.
    """
    body = text.strip()
    offset = 0
    if body.startswith("="):
        body = body[1:]
        offset = 1
    if not body.strip():
        raise FormulaParseError("Empty formula", position=offset)
    try:
        return _parser.parse(body)
    except LarkError as exc:
        pos = getattr(exc, "column", None)
        if isinstance(pos, int) and pos > 0:
            pos += offset
        raise FormulaParseError(str(exc).strip(), position=pos) from exc


def parse_number(token: Token | str) -> int | float:
    """Parse a NUMBER token to int or float.

    Integer text too long for ``int()`` is read as a float (infinity).
    """
    s = str(token)
    if s.isdigit():
        try:
            return int(s)
        except ValueError:
            pass
    return float(s)


def parse_string(token: Token | str) -> str:
    """Strip the surrounding quotes and unescape doubled quotes."""
    raw = str(token)
    return raw[1:-1].replace('""', '"')


def parse_boolean(token: Token | str) -> bool:
    return str(token).upper() == "TRUE"


class _CellRefCollector(Visitor):
    def __init__(self) -> None:
        self.refs: list[str] = []

    def cell_ref(self, tree: Tree) -> None:
        self.refs.append(str(tree.children[0]))

    def cell_range(self, tree: Tree) -> None:
        self.refs.extend(str(token) for token in tree.children)


def extract_cell_refs(tree: Tree) -> list[str]:
    """Return the cell reference tokens of *tree*, deduplicated, in visit order."""
    collector = _CellRefCollector()
    collector.visit(tree)
    seen: dict[str, None] = {}
    for ref in collector.refs:
        seen.setdefault(ref, None)
    return list(seen)
