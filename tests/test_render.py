from typing import Any

import pytest

from tally.emitters.text_emitter import InfixEmitter, SExprEmitter
from tally.tally_ast import ASTNode, bop, ident, number
from tally.tally_errors import ExpressionTooDeepError
from tally.tally_render import FORMATS, Emitter, Renderer


def test_force_protocol_reference() -> None:
    assert hasattr(Emitter, "emit")


def test_renderer_selects_emitter() -> None:
    assert isinstance(Renderer("infix").emitter, InfixEmitter)
    assert isinstance(Renderer("SExpr").emitter, SExprEmitter)
    assert set(FORMATS) == {"infix", "sexpr", "json"}


def test_renderer_invalid_format_raises() -> None:
    with pytest.raises(ValueError, match="Unknown output format"):
        Renderer("xml")


def test_renderer_rejects_non_ast() -> None:
    with pytest.raises(TypeError, match="ASTNode"):
        Renderer("infix").render(["not-an-ast"])  # type: ignore


def test_renderer_one_line_per_tree() -> None:
    assert Renderer("infix").render([number(1), ident("x")]) == "1\nx"


def test_renderer_uses_emitter(monkeypatch: Any) -> None:
    class DummyEmitter:
        def __init__(self) -> None:
            self.seen: list[Any] = []

        def emit(self, node: Any) -> None:
            self.seen.append(node)

        def get_output(self) -> str:
            return "result"

    monkeypatch.setitem(FORMATS, "infix", DummyEmitter)
    renderer = Renderer("infix")
    assert renderer.render([number(1)]) == "result"
    assert renderer.emitter.seen == [number(1)]  # type: ignore[attr-defined]


@pytest.mark.parametrize("fmt", ["infix", "sexpr", "json"])  # type: ignore[misc]
def test_renderer_reports_deep_trees(fmt: str) -> None:
    tree: ASTNode = number(1)
    for _ in range(5000):
        tree = bop("Plus", tree, number(1))
    with pytest.raises(ExpressionTooDeepError):
        Renderer(fmt).render([tree])
