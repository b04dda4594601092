"""
Provides the `UserInterfaceMapper` class for managing user-defined aliases
in the TALLY calculator language.

Aliases let users spell operators as words (`3 times 4`, `10 over 3`) and declare
extra prefix units (`"CHF"`) without touching the lexer.

Classes:
    - UserInterfaceMapper: Maps alias words to canonical symbol names.
    - MappingError: Raised when configuration is invalid or aliases collide.

Features:
    - Dict mode (alias group to symbol name) and list mode (positional groups
      against `CANONICAL_SYMBOLS`)
    - All-or-nothing updates: a colliding configuration changes nothing
    - Loads aliases and prefix units from a JSON file
    - Human-readable alias report for the REPL

Usage:
    >>> mapper = UserInterfaceMapper.from_canonical()
    >>> mapper.configure({"by": "MUL"})
    >>> mapper.get_token("by").value
    <Symbol.MUL: '*'>
"""

import json
import logging
from collections.abc import Iterable
from typing import Any

from tally.tally_constants import (
    CANONICAL_SYMBOL_MAP,
    CANONICAL_SYMBOLS,
    PREFIX_UNITS,
    Symbol,
)
from tally.tally_lexer import Token

logger = logging.getLogger(__name__)


class MappingError(Exception):
    """Raised when an alias configuration is invalid or collides with known aliases.

    Attributes:
        conflicts (list[str]): One line per collision,
            e.g. "'by' → conflict between MUL and ADD".
    """

    def __init__(self, message: str, conflicts: list[str] | None = None):
        super().__init__(message)
        self.conflicts = list(conflicts or ())


def alias_words(group: Any) -> list[str]:
    """Flattens one alias group into words.

    A group may be a word, a number, a (nested) list/tuple/set of those, or a
    dict whose keys are the words. Anything else contributes nothing.
    """
    if isinstance(group, str):
        return [group]
    if isinstance(group, (int, float)):
        return [str(group)]
    if isinstance(group, dict):
        return [str(key) for key in group]
    if isinstance(group, (list, tuple, set)):
        return [word for item in group for word in alias_words(item)]
    return []


class UserInterfaceMapper:
    """Holds the active alias table and prefix units.

    Attributes:
        aliases (dict[str, str]): Alias word → canonical symbol name (e.g. "MUL").
        prefix_units (set[str]): Identifiers that attach to a following number.
    """

    def __init__(self) -> None:
        self.aliases: dict[str, str] = {}
        self.prefix_units: set[str] = set(PREFIX_UNITS)

    @classmethod
    def from_canonical(cls) -> "UserInterfaceMapper":
        """A mapper preloaded with the default word aliases (`plus`, `times`, ...)."""
        mapper = cls()
        mapper.configure(dict(CANONICAL_SYMBOL_MAP))
        return mapper

    def get_token(self, alias: str, line: int = 0, col: int = 0) -> Token | None:
        """Resolves an alias word to a SYMBOL token.

        Args:
            alias: The word as it appeared in the source.
            line: Line number to attach to the token (optional).
            col: Column number to attach to the token (optional).

        Returns:
            The `Token` carrying the aliased `Symbol`, or `None` for unknown words.
        """
        if alias not in self.aliases:
            return None
        return Token("SYMBOL", Symbol[self.aliases[alias]], line, col)

    def apply(self, tokens: Iterable[Token]) -> list[Token]:
        """Rewrites aliased IDENT tokens into SYMBOL tokens; others pass through."""
        out: list[Token] = []
        for tok in tokens:
            if tok.type == "IDENT":
                out.append(self.get_token(tok.value, tok.line, tok.col) or tok)
            else:
                out.append(tok)
        return out

    def report(self) -> str:
        """One line per alias, then the prefix units."""
        rows = []
        for alias in sorted(self.aliases):
            name = self.aliases[alias]
            rows.append(f"{alias:>12} → {Symbol[name].value:<4} ({name})")
        rows.append("prefix units: " + " ".join(sorted(self.prefix_units)))
        return "\n".join(rows)

    def summary(self) -> dict[str, str]:
        return dict(self.aliases)

    def load_file(self, path: str) -> None:
        """
        Loads aliases and prefix units from a JSON file.

        Keys are comma-separated alias words and values canonical symbol names.
        The optional "prefix_units" key lists extra prefix units:

            {
                "by, times2": "MUL",
                "prefix_units": ["CHF"]
            }

        Raises:
            MappingError: If the file is unreadable or its contents are rejected.
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            units = data.pop("prefix_units", [])
            groups = {
                tuple(word.strip() for word in key.split(",")): name
                for key, name in data.items()
            }
            self.merge(groups, units)
        except Exception as e:
            raise MappingError(f"Failed to load alias file: {e}") from e
        logger.debug("loaded %d alias groups from %s", len(groups), path)

    def merge(self, cfg: list[Any] | dict[Any, Any], prefix_units: Any = None) -> None:
        """Configures aliases, then adds prefix units (`CHF 5`).

        Raises:
            MappingError: If `prefix_units` is given but is not a list, or if
                `configure` rejects `cfg`. Nothing changes then.
        """
        units = [] if prefix_units is None else prefix_units
        if not isinstance(units, list):
            raise MappingError("'prefix_units' must be a list")
        self.configure(cfg)
        self.prefix_units.update(str(unit) for unit in units)

    def configure(self, cfg: list[Any] | dict[Any, Any]) -> None:
        """
        Merges new aliases into the table.

        Dict mode maps alias groups to symbol names. List mode takes one alias
        group per entry, matched to `CANONICAL_SYMBOLS` by position.

        Raises:
            MappingError: If the config is neither a list nor a dict, names an
                unknown symbol, has more list entries than there are symbols, or
                binds a word to two different symbols. Nothing is merged then.
        """
        if isinstance(cfg, dict):
            bindings = list(cfg.items())
        elif isinstance(cfg, list):
            if len(cfg) > len(CANONICAL_SYMBOLS):
                raise MappingError("Too many entries in list-mode config")
            bindings = list(zip(cfg, CANONICAL_SYMBOLS))
        else:
            raise MappingError("Configuration must be either a list or a dict")

        staged: dict[str, str] = {}
        conflicts: list[str] = []
        for group, name in bindings:
            if name not in CANONICAL_SYMBOLS:
                raise MappingError(f"Unknown symbol name: {name}")
            for word in alias_words(group):
                bound = staged.get(word, self.aliases.get(word))
                if bound is None or bound == name:
                    staged[word] = name
                else:
                    conflicts.append(f"'{word}' → conflict between {bound} and {name}")

        if conflicts:
            raise MappingError("Alias collision(s) detected", conflicts)
        self.aliases.update(staged)


__all__ = ["MappingError", "UserInterfaceMapper", "alias_words"]
