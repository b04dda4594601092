"""
Renders TALLY expression trees as text.

The evaluator that executes trees lives outside this package, so the shell and the
CLI show the structure the parser chose instead. Three emitters are provided:

    InfixEmitter   fully parenthesised infix, e.g. `(2 + (3 / 4))`
    SExprEmitter   tagged s-expressions, e.g. `(ImplicitPlus (ApplyMul 6 feet) (ApplyMul 1 inch))`
    JsonEmitter    one JSON object per tree, from `ASTNode.to_dict()`

Each emitter keeps a buffer of rendered lines (`lines`) retrieved with `get_output()`.
Expression emitters dispatch on `node.kind` to an `emit_<kind>` method.

Raises:
    NotImplementedError: If a node kind has no corresponding emit method.
"""

import json
from decimal import Decimal, localcontext
from fractions import Fraction
from typing import Any

from tally.tally_ast import ASTNode

_BOP_SYMBOLS = {
    "Plus": "+",
    "Minus": "-",
    "Mul": "*",
    "Div": "/",
    "Mod": "%",
    "Pow": "^",
    "ImplicitPlus": "",
}

_TAGS = {
    "of": "Of",
    "parens": "Parens",
    "fn": "Fn",
    "apply": "Apply",
    "apply_function_call": "ApplyFunctionCall",
    "apply_mul": "ApplyMul",
    "unary_minus": "UnaryMinus",
    "unary_plus": "UnaryPlus",
    "unary_div": "UnaryDiv",
    "factorial": "Factorial",
    "assign": "Assign",
    "statements": "Statements",
    "as": "As",
}


def format_number(value: Any) -> str:
    """Formats a numeric literal; exact fractions print as decimals."""
    if isinstance(value, Fraction):
        if value.denominator == 1:
            return str(value.numerator)
        with localcontext() as ctx:
            ctx.prec = 64
            return str(Decimal(value.numerator) / Decimal(value.denominator))
    return str(value)


class TextEmitter:
    """Base class for line-oriented emitters.

    Attributes:
        lines (list[str]): Accumulated rendered lines.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []

    def get_output(self) -> str:
        return "\n".join(self.lines)

    def emit(self, node: ASTNode) -> None:
        """Renders `node` and appends the result to the buffer."""
        self.lines.append(self.emit_expr(node))

    def emit_expr(self, node: ASTNode) -> str:
        """
        Dispatches expression emission based on node kind.

        Raises
        ------
        NotImplementedError
            If no emitter exists for the node kind.
        """
        method = getattr(self, f"emit_{node.kind}", None)
        if callable(method):
            return str(method(node))
        raise NotImplementedError(f"No expression emitter for kind '{node.kind}'")

    def emit_literal(self, node: ASTNode) -> str:
        if node.type == "unit":
            return "()"
        if node.type == "string":
            return json.dumps(node.value, ensure_ascii=False)
        return format_number(node.value)

    def emit_identifier(self, node: ASTNode) -> str:
        return str(node.value)


class InfixEmitter(TextEmitter):
    """Emits fully parenthesised infix text, so precedence is visible at a glance."""

    def _unary(self, prefix: str, node: ASTNode) -> str:
        return f"({prefix}{self.emit_expr(node.children[0])})"

    def emit_of(self, node: ASTNode) -> str:
        return f"({node.value} of {self.emit_expr(node.children[0])})"

    def emit_parens(self, node: ASTNode) -> str:
        return f"({self.emit_expr(node.children[0])})"

    def emit_fn(self, node: ASTNode) -> str:
        return f"(\\{node.value}.{self.emit_expr(node.children[0])})"

    def emit_apply(self, node: ASTNode) -> str:
        lhs, rhs = node.children
        return f"({self.emit_expr(lhs)} {self.emit_expr(rhs)})"

    emit_apply_mul = emit_apply

    def emit_apply_function_call(self, node: ASTNode) -> str:
        lhs, rhs = node.children
        return f"{self.emit_expr(lhs)}({self.emit_expr(rhs)})"

    def emit_bop(self, node: ASTNode) -> str:
        lhs = self.emit_expr(node.children[0])
        rhs = self.emit_expr(node.children[1])
        op = _BOP_SYMBOLS[str(node.value)]
        if not op:
            return f"({lhs} {rhs})"
        return f"({lhs} {op} {rhs})"

    def emit_unary_minus(self, node: ASTNode) -> str:
        return self._unary("-", node)

    def emit_unary_plus(self, node: ASTNode) -> str:
        return self._unary("+", node)

    def emit_unary_div(self, node: ASTNode) -> str:
        return self._unary("/", node)

    def emit_factorial(self, node: ASTNode) -> str:
        return f"({self.emit_expr(node.children[0])}!)"

    def emit_assign(self, node: ASTNode) -> str:
        return f"({node.value} = {self.emit_expr(node.children[0])})"

    def emit_statements(self, node: ASTNode) -> str:
        first, rest = node.children
        return f"{self.emit_expr(first)}; {self.emit_expr(rest)}"

    def emit_as(self, node: ASTNode) -> str:
        value, target = node.children
        return f"({self.emit_expr(value)} to {self.emit_expr(target)})"


class SExprEmitter(TextEmitter):
    """Emits `(Tag child ...)` forms named after the tree variants."""

    def _tagged(self, node: ASTNode) -> str:
        parts = [_TAGS[node.kind]]
        if node.value is not None:
            parts.append(str(node.value))
        parts.extend(self.emit_expr(c) for c in node.children)
        return f"({' '.join(parts)})"

    def emit_bop(self, node: ASTNode) -> str:
        lhs, rhs = node.children
        return f"({node.value} {self.emit_expr(lhs)} {self.emit_expr(rhs)})"

    emit_of = _tagged
    emit_parens = _tagged
    emit_fn = _tagged
    emit_apply = _tagged
    emit_apply_function_call = _tagged
    emit_apply_mul = _tagged
    emit_unary_minus = _tagged
    emit_unary_plus = _tagged
    emit_unary_div = _tagged
    emit_factorial = _tagged
    emit_assign = _tagged
    emit_statements = _tagged
    emit_as = _tagged


class JsonEmitter(TextEmitter):
    def emit_expr(self, node: ASTNode) -> str:
        return json.dumps(node.to_dict(), ensure_ascii=False)


__all__ = [
    "InfixEmitter",
    "JsonEmitter",
    "SExprEmitter",
    "TextEmitter",
    "format_number",
]
