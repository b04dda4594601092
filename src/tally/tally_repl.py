import json
import logging
from typing import Any

from tally.tally_errors import TallyError
from tally.tally_lexer import tokenize
from tally.tally_parser import Parser
from tally.tally_paths import get_config_file_location, get_history_file_location
from tally.tally_render import Renderer
from tally.tally_uimap import MappingError, UserInterfaceMapper

try:
    import readline

    HAS_READLINE = True
except ImportError:
    # readline not available on some platforms (e.g., Windows)
    HAS_READLINE = False

logger = logging.getLogger(__name__)

uimap = UserInterfaceMapper.from_canonical()


def print_error(e: Exception) -> None:
    print(f"[error] >>> {e}")


def handle_alias_command(src: str) -> bool:
    src = src.strip()
    if not src.upper().startswith("ALIAS"):
        return False
    command = src[5:].strip()
    if command == "":
        print(uimap.report())
        return True
    try:
        raw_map: Any = json.loads(command)
        if not isinstance(raw_map, dict):
            raise MappingError("ALIAS expects a JSON object")
        units = raw_map.pop("prefix_units", None)
        uimap.merge(raw_map, units)
        print("[ok] >>> Aliases updated.")
        for alias, sym in sorted(raw_map.items()):
            print(f"{alias:>12} → {sym}")
    except (ValueError, MappingError) as e:
        print("[error] >>> Failed to configure aliases:")
        print(e)
        for conflict in getattr(e, "conflicts", []):
            print(" -", conflict)
    return True


def load_config() -> None:
    path = get_config_file_location()
    if path is None or not path.exists():
        return
    try:
        uimap.load_file(str(path))
        print(f"[config] >>> Loaded aliases from {path}")
    except MappingError as e:
        print(f"[config] >>> {e}")


def load_history() -> None:
    if not HAS_READLINE:
        return
    path = get_history_file_location()
    if path is not None and path.exists():
        try:
            readline.read_history_file(str(path))
        except OSError as e:
            logger.warning("cannot read history file %s: %s", path, e)


def save_history() -> None:
    if not HAS_READLINE:
        return
    path = get_history_file_location()
    if path is None:
        return
    try:
        readline.set_history_length(1000)
        readline.write_history_file(str(path))
    except OSError as e:
        logger.warning("cannot write history file %s: %s", path, e)


def process_line(src: str, fmt: str = "infix", verbose: bool = False) -> str:
    """Lex, alias-map, parse, and render one line of input.

    Raises:
        TallyError: If the line does not lex or parse. Nothing is rendered then.
    """
    tokens = uimap.apply(tokenize(src, uimap.prefix_units))
    if verbose:
        print(f"[tokens] >>> {tokens}")
    tree = Parser(tokens, uimap.prefix_units).parse()
    if verbose:
        print(f"[tree] >>> {Renderer('sexpr').render([tree])}")
    return Renderer(fmt).render([tree])


def start_repl(fmt: str = "infix", verbose: bool = False) -> None:
    print(f"Tally REPL [format={fmt}]. Type 'exit' or 'quit' to leave.")
    load_config()
    load_history()

    try:
        while True:
            try:
                src = input(">>> ").strip()
                if src in ("exit", "quit"):
                    print("Exiting Tally REPL.")
                    return
                if not src or src.startswith("#"):
                    continue
                if src.lower() == "verbose-mode":
                    verbose = not verbose
                    print(f"[mode] >>> Verbose mode {'ON' if verbose else 'OFF'}")
                    continue
                if handle_alias_command(src):
                    continue

                try:
                    print(process_line(src, fmt, verbose))
                except TallyError as e:
                    print_error(e)

            except (KeyboardInterrupt, EOFError):
                print("\nExiting Tally REPL.")
                break
    finally:
        save_history()


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
