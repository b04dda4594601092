import json
import sys
from pathlib import Path
from typing import Any

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from tally import tally_cli
from tally.tally_errors import TallyError

SOURCE = "# distances\n6 feet 1 inch\n\n2 3/4\n"


@pytest.fixture  # type: ignore[misc]
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "input.tally"
    path.write_text(SOURCE, encoding="utf-8")
    return path


def test_run_tally_string_input_prints(capsys: pytest.CaptureFixture[str]) -> None:
    tally_cli.run_tally(source="$5", is_string=True)
    assert capsys.readouterr().out.strip() == "($ 5)"


def test_run_tally_file_input(
    source_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    tally_cli.run_tally(source=str(source_file))
    assert capsys.readouterr().out.splitlines() == [
        "((6 feet) (1 inch))",
        "(2 + (3 / 4))",
    ]


def test_run_tally_rejects_other_extensions(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Only .tally files are supported."):
        tally_cli.run_tally(source=str(tmp_path / "input.txt"))


def test_run_tally_pretty_output(capsys: pytest.CaptureFixture[str]) -> None:
    tally_cli.run_tally(source="1 + 2", is_string=True, fmt="sexpr", pretty=True)
    out = capsys.readouterr().out
    assert "Parse trees (sexpr)" in out
    assert "(Plus 1 2)" in out


def test_run_tally_output_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    output_path = tmp_path / "out.jsonl"
    tally_cli.run_tally(source="x to y", is_string=True, fmt="json", out=str(output_path))
    assert capsys.readouterr().out == ""
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["kind"] == "as"


def test_run_tally_output_file_pretty(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    output_path = tmp_path / "out.txt"
    tally_cli.run_tally(source="1", is_string=True, out=str(output_path), pretty=True)
    assert f"(wrote to {output_path})" in capsys.readouterr().out
    assert output_path.read_text(encoding="utf-8") == "1\n"


def test_run_tally_with_alias_config(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = tmp_path / "aliases.json"
    config.write_text(json.dumps({"by": "MUL", "prefix_units": ["CHF"]}), encoding="utf-8")
    tally_cli.run_tally(source="CHF 5 by 2", is_string=True, config=str(config))
    assert capsys.readouterr().out.strip() == "((CHF 5) * 2)"


def test_run_tally_parse_error_prints_nothing(
    source_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source_file.write_text("1 + 1\n2 3\n", encoding="utf-8")
    with pytest.raises(TallyError, match="unexpected input found"):
        tally_cli.run_tally(source=str(source_file))
    assert capsys.readouterr().out == ""


def test_main_string(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(sys, "argv", ["tally", "-s", "sin 30", "-f", "sexpr"])
    tally_cli.main()
    assert capsys.readouterr().out.strip() == "(ApplyFunctionCall sin 30)"


def test_main_passes_arguments(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}
    monkeypatch.setattr(
        sys, "argv", ["tally", "f.tally", "-o", "out.txt", "-p", "-c", "a.json"]
    )
    monkeypatch.setattr(tally_cli, "run_tally", lambda **kwargs: seen.update(kwargs))
    tally_cli.main()
    assert seen == {
        "source": "f.tally",
        "is_string": False,
        "fmt": "infix",
        "out": "out.txt",
        "pretty": True,
        "config": "a.json",
    }


def test_main_error_exits(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(sys, "argv", ["tally", "-s", "2 3"])
    with pytest.raises(SystemExit) as e:
        tally_cli.main()
    assert e.value.code == 1
    assert capsys.readouterr().err.startswith("error: unexpected input found")


@pytest.mark.parametrize(  # type: ignore[misc]
    "source, message",
    [
        ("missing.tally", "No such file"),
        ("input.txt", "Only .tally files are supported."),
    ],
)
def test_main_bad_source_exits(
    source: str,
    message: str,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(sys, "argv", ["tally", str(tmp_path / source)])
    with pytest.raises(SystemExit) as e:
        tally_cli.main()
    assert e.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith("error: ")
    assert message in err


def test_main_deep_expression_exits(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(sys, "argv", ["tally", "-s", " + ".join(["1"] * 3000)])
    with pytest.raises(SystemExit) as e:
        tally_cli.main()
    assert e.value.code == 1
    assert "expression is nested too deeply" in capsys.readouterr().err


def test_main_bad_config_exits(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(
        sys, "argv", ["tally", "-s", "1", "-c", str(tmp_path / "missing.json")]
    )
    with pytest.raises(SystemExit) as e:
        tally_cli.main()
    assert e.value.code == 1
    assert "Failed to load alias file" in capsys.readouterr().err


def test_main_invalid_format(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["tally", "-f", "xml", "-s", "1"])
    with pytest.raises(SystemExit) as e:
        tally_cli.main()
    assert e.value.code == 2


@pytest.mark.parametrize(  # type: ignore[misc]
    "argv, expected",
    [
        (["tally"], {}),
        (["tally", "--repl"], {"fmt": "infix", "verbose": False}),
        (["tally", "--repl", "-f", "json", "--verbose"], {"fmt": "json", "verbose": True}),
    ],
)
def test_main_launches_repl(
    argv: list[str], expected: dict[str, Any], monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(sys, "argv", argv)
    monkeypatch.setattr(
        "tally.tally_repl.start_repl", lambda **kwargs: calls.append(kwargs)
    )
    tally_cli.main()
    assert calls == [expected]


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None)  # type: ignore[misc]
@given(st.text(max_size=40))  # type: ignore[misc]
def test_run_tally_random_input_fails_cleanly(source: str) -> None:
    try:
        tally_cli.run_tally(source=source, is_string=True)
    except TallyError:
        pass
