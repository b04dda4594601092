"""
TALLY CLI Entrypoint.

This module provides the command-line interface for parsing TALLY expressions.
It supports rendering parse trees from files or inline strings, and an
interactive REPL mode.

Features:
    - Read source from `.tally` files (one expression per line) or inline strings.
    - Lex, alias-map, parse, and render every expression in the selected format.
    - Output to console or file.
    - Launch an interactive REPL with optional verbosity.

Example usage:
    tally sums.tally
    tally -s "6 feet 1 inch to cm" -f sexpr
    tally myfile.tally -f json -o trees.jsonl
    tally --repl --verbose

Functions:
    run_tally(source: str, is_string: bool = False, fmt: str = "infix", out: Optional[str] = None,
              pretty: bool = False, config: Optional[str] = None) -> None:
        Executes the full pipeline (lex → parse → render → output).

    main() -> None:
        Parses CLI arguments and invokes the appropriate action (REPL or render).
"""

import argparse
import logging
import sys

from tally.tally_ast import ASTNode
from tally.tally_errors import TallyError
from tally.tally_lexer import tokenize
from tally.tally_parser import Parser
from tally.tally_render import FORMATS, Renderer
from tally.tally_uimap import MappingError, UserInterfaceMapper

logger = logging.getLogger("tally")


def run_tally(
    source: str,
    is_string: bool = False,
    fmt: str = "infix",
    out: str | None = None,
    pretty: bool = False,
    config: str | None = None,
) -> None:
    """
    Run the TALLY toolchain: lex, parse, render, and print or write the result.

    Args:
        source (str): The TALLY source text or path to a `.tally` file.
        is_string (bool): If True, treats `source` as raw text instead of a file path.
        fmt (str): Output format ('infix', 'sexpr', 'json'). Defaults to 'infix'.
        out (str | None): Optional path to write the rendered output. If None, prints to stdout.
        pretty (bool): If True, prints a banner around the output.
        config (str | None): Optional alias JSON file to load before parsing.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.tally'.
        TallyError: If any expression fails to lex or parse. Nothing is printed then.
        OSError: If the source file cannot be read.
    """
    if not is_string and not source.endswith(".tally"):
        raise ValueError("Only .tally files are supported.")
    # 1. Read source
    if not is_string:
        with open(source, encoding="utf-8") as f:
            source = f.read()

    uimap = UserInterfaceMapper.from_canonical()
    if config:
        uimap.load_file(config)

    # 2. Lex and parse each expression line
    lines = [source] if is_string else source.splitlines()
    trees: list[ASTNode] = []
    for lineno, line in enumerate(lines, start=1):
        if not line.strip() or line.strip().startswith("#"):
            continue
        tokens = uimap.apply(tokenize(line, uimap.prefix_units))
        logger.debug("line %d: %d tokens", lineno, len(tokens))
        trees.append(Parser(tokens, uimap.prefix_units).parse())

    # 3. Render
    text = Renderer(fmt).render(trees)

    # 4. Output result
    if pretty:
        banner = "=" * 20
        print(f"{banner}\nParse trees ({fmt})\n{banner}\n{text}\n{banner}\n")
    elif not out:
        print(text)

    # 5. Optional write to file
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        if pretty:
            print(f"(wrote to {out})")


def main() -> None:
    """
    Entry point for the TALLY CLI.

    Launches the REPL if no arguments are passed or `--repl` is specified;
    otherwise runs the full pipeline on the given source.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `-f`, `--format`: Output format ('infix', 'sexpr', 'json'), default is 'infix'.
        - `-o`, `--out`: Write rendered output to a file.
        - `-p`, `--pretty`: Show a banner around the output.
        - `-c`, `--config`: Load aliases from a JSON file.
        - `--repl`: Launch the interactive REPL.
        - `--verbose`: Enable debug logging and verbose REPL mode.
    """
    if len(sys.argv) == 1:
        from tally.tally_repl import start_repl

        start_repl()
        return
    parser = argparse.ArgumentParser(prog="tally")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="fmt",
        choices=tuple(FORMATS),
        default="infix",
        help="Output format (default: infix)",
    )
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "-p", "--pretty", action="store_true", help="Show output with banners"
    )
    parser.add_argument(
        "-c", "--config", metavar="ALIASFILE", help="Load aliases from a JSON file"
    )
    parser.add_argument(
        "--repl",
        action="store_true",
        help="Launch interactive REPL instead of rendering",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Debug logging / verbose REPL mode"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.repl or args.source is None:
        from tally.tally_repl import start_repl

        start_repl(fmt=args.fmt, verbose=args.verbose)
    else:
        try:
            run_tally(
                source=args.source,
                is_string=args.string,
                fmt=args.fmt,
                out=args.out,
                pretty=args.pretty,
                config=args.config,
            )
        except (TallyError, MappingError, OSError, ValueError) as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
