"""
Provides the `Renderer` class and emitter interface for presenting TALLY trees.

Classes and Features:
    - Emitter (Protocol): Interface for all output emitters. Requires `emit` and `get_output`.
    - Renderer: Picks an emitter by format name ("infix", "sexpr", "json") and feeds
      it parsed trees.

Usage:
    The Renderer takes a list of `ASTNode` instances and returns one rendered line per tree.

Example:
    >>> Renderer("sexpr").render([parse_source("2 meters")])
    '(ApplyMul 2 meters)'

Raises:
    ValueError: If the format is not supported.
    TypeError: If the input contains something other than ASTNode instances.
"""

from typing import Protocol

from tally.emitters.text_emitter import InfixEmitter, JsonEmitter, SExprEmitter
from tally.tally_ast import ASTNode
from tally.tally_errors import ExpressionTooDeepError


class Emitter(Protocol):  # pragma: no cover
    """Protocol for all TALLY output emitters.

    Methods:
        emit(node): Renders one tree into the emitter's buffer.
        get_output(): Returns the complete rendered text as a string.
    """

    def emit(self, node: ASTNode) -> None: ...  # pragma: no cover

    def get_output(self) -> str: ...  # pragma: no cover


EmitterType = type[Emitter]
"""Alias for a concrete Emitter class type."""

FORMATS: dict[str, EmitterType] = {
    "infix": InfixEmitter,
    "sexpr": SExprEmitter,
    "json": JsonEmitter,
}


class Renderer:
    """Dispatches TALLY trees to the emitter for the chosen output format.

    Attributes:
        emitter (Emitter): The selected emitter instance.
    """

    def __init__(self, fmt: str) -> None:
        """
        Args:
            fmt: The desired output format ("infix", "sexpr", "json").

        Raises:
            ValueError: If the format is not supported.
        """
        fmt = fmt.lower()
        if fmt not in FORMATS:
            raise ValueError(f"Unknown output format: {fmt!r}")
        self.emitter: Emitter = FORMATS[fmt]()

    def render(self, trees: list[ASTNode]) -> str:
        """Renders each tree on its own line.

        Raises:
            TypeError: If any element is not an ASTNode.
            ExpressionTooDeepError: If a tree is too deep to render.
        """
        if not all(isinstance(node, ASTNode) for node in trees):
            raise TypeError("All items to render must be ASTNode instances.")
        for node in trees:
            try:
                self.emitter.emit(node)
            except RecursionError as e:
                raise ExpressionTooDeepError() from e
        return self.emitter.get_output()


__all__ = ["FORMATS", "Emitter", "Renderer"]
