"""
Defines the expression tree produced by the TALLY parser.

Classes:
    ASTNode:
        One node of the tree, tagged by `kind`. Every variant the evaluator must
        understand is expressed through the same class; see KINDS below.

    ASTDict:
        TypedDict representation for serializing ASTNode instances to plain Python
        dictionaries, suitable for JSON output or debugging.

Kinds:
    literal              value=opaque value, type_ in {"number", "string", "unit"}
    identifier           value=name
    of                   value=name, children=(inner,)
    parens               children=(inner,)
    fn                   value=parameter, children=(body,)
    apply                children=(lhs, rhs)
    apply_function_call  children=(lhs, rhs)
    apply_mul            children=(lhs, rhs)
    bop                  value=one of BOPS, children=(lhs, rhs)
    unary_minus          children=(inner,)
    unary_plus           children=(inner,)
    unary_div            children=(inner,)
    factorial            children=(inner,)
    assign               value=name, children=(rhs,)
    statements           children=(first, rest)
    as                   children=(value, target)

Nodes are never mutated after construction: children are held in a tuple and the
parser always builds new nodes from already-built ones.

Example:
    node = bop("Plus", number(2), bop("Div", number(3), number(4)))
"""

from __future__ import annotations

from typing import Any, TypedDict

KINDS = frozenset(
    {
        "literal",
        "identifier",
        "of",
        "parens",
        "fn",
        "apply",
        "apply_function_call",
        "apply_mul",
        "bop",
        "unary_minus",
        "unary_plus",
        "unary_div",
        "factorial",
        "assign",
        "statements",
        "as",
    }
)

BOPS = ("Plus", "Minus", "Mul", "Div", "Mod", "Pow", "ImplicitPlus")


class ASTDict(TypedDict, total=False):
    """
    TypedDict representation of an ASTNode used for serialization.

    Fields:
        kind (str): The node kind (e.g., "bop", "apply_mul").
        value (Any): Name, operator, or literal value; numbers are emitted as strings.
        type (Optional[str]): Literal sub-kind for "literal" nodes.
        line (int): Line number of the node's first token.
        col (int): Column number of the node's first token.
        children (List[ASTDict]): Child nodes, in order.
    """

    kind: str
    value: Any
    type: str | None
    line: int
    col: int
    children: list["ASTDict"]


class ASTNode:
    """
    Represents a node in the TALLY expression tree.

    Args:
        kind (str): The variant tag, one of KINDS.
        value (Any, optional): Name, operator name, or literal payload.
        children (Iterable[ASTNode], optional): Child nodes; stored as a tuple.
        line (int): Source line number (default is 0).
        col (int): Source column number (default is 0).
        type_ (str, optional): Literal sub-kind ("number", "string", "unit").

    Raises:
        ValueError: If `kind` is not a known variant.
    """

    __slots__ = ("kind", "value", "children", "line", "col", "type")

    def __init__(
        self,
        kind: str,
        value: Any = None,
        children: tuple[ASTNode, ...] | list[ASTNode] | None = None,
        line: int = 0,
        col: int = 0,
        type_: str | None = None,
    ):
        if kind not in KINDS:
            raise ValueError(f"Unknown node kind: {kind!r}")
        self.kind = kind
        self.value = value
        self.children: tuple[ASTNode, ...] = tuple(children or ())
        self.line = line
        self.col = col
        self.type = type_

    def __repr__(self) -> str:
        fields = [self.kind]
        if self.value is not None:
            fields.append(f"value={self.value!r}")
        if self.type is not None:
            fields.append(f"type_={self.type}")
        if self.children:
            shown = [repr(c) for c in self.children[:3]]
            if len(self.children) > 3:
                shown.append("...")
            fields.append("children=[" + ", ".join(shown) + "]")
        return "ASTNode(" + ", ".join(fields) + ")"

    def _key(self) -> tuple[Any, ...]:
        return (self.kind, self.value, self.type, self.line, self.col, self.children)

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, ASTNode) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def without_positions(self) -> ASTNode:
        """Returns a structurally identical tree with every line/col reset to 0."""
        return ASTNode(
            self.kind,
            self.value,
            [c.without_positions() for c in self.children],
            type_=self.type,
        )

    def to_dict(self) -> ASTDict:
        val: Any = self.value
        if self.kind == "literal" and self.type == "number":
            val = str(val)
        return {
            "kind": self.kind,
            "value": val,
            "type": self.type,
            "line": self.line,
            "col": self.col,
            "children": [c.to_dict() for c in self.children],
        }


# Constructors


def number(value: Any, line: int = 0, col: int = 0) -> ASTNode:
    return ASTNode("literal", value, line=line, col=col, type_="number")


def string(value: str, line: int = 0, col: int = 0) -> ASTNode:
    return ASTNode("literal", value, line=line, col=col, type_="string")


def unit_literal(line: int = 0, col: int = 0) -> ASTNode:
    """The empty value produced by `()`, empty input, or only `;`."""
    return ASTNode("literal", None, line=line, col=col, type_="unit")


def ident(name: str, line: int = 0, col: int = 0) -> ASTNode:
    return ASTNode("identifier", name, line=line, col=col)


def bop(op: str, lhs: ASTNode, rhs: ASTNode) -> ASTNode:
    if op not in BOPS:
        raise ValueError(f"Unknown binary operator: {op!r}")
    return ASTNode("bop", op, [lhs, rhs], line=lhs.line, col=lhs.col)


def pair(kind: str, lhs: ASTNode, rhs: ASTNode) -> ASTNode:
    """Builds a two-child node (apply, apply_mul, statements, as, ...)."""
    return ASTNode(kind, children=[lhs, rhs], line=lhs.line, col=lhs.col)


def wrap(kind: str, inner: ASTNode, line: int = 0, col: int = 0) -> ASTNode:
    """Builds a one-child node (parens, unary_*, factorial)."""
    return ASTNode(
        kind, children=[inner], line=line or inner.line, col=col or inner.col
    )


def named(kind: str, name: str, inner: ASTNode, line: int = 0, col: int = 0) -> ASTNode:
    """Builds a named one-child node (of, fn, assign)."""
    return ASTNode(kind, name, [inner], line=line, col=col)


# Shape predicates used by the parser's disambiguation rules


def is_number(node: ASTNode) -> bool:
    return node.kind == "literal" and node.type == "number"


def is_negated_number(node: ASTNode) -> bool:
    return node.kind == "unary_minus" and is_number(node.children[0])


def is_bop(node: ASTNode, op: str) -> bool:
    return node.kind == "bop" and node.value == op


__all__ = [
    "ASTDict",
    "ASTNode",
    "BOPS",
    "KINDS",
    "bop",
    "ident",
    "is_bop",
    "is_negated_number",
    "is_number",
    "named",
    "number",
    "pair",
    "string",
    "unit_literal",
    "wrap",
]
