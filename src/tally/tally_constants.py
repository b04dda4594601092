"""
Symbol tables shared by the TALLY lexer, parser, and alias mapper.

Contents:
    Symbol:
        Closed enumeration of every operator/keyword tag the parser understands.
        The member value is the canonical display form used in diagnostics.

    token_hashmap:
        Maps source spellings (operators and keyword words) to their `Symbol`.

    PREFIX_UNITS:
        Identifiers that attach to a following number by application, e.g. `$5`.

    CANONICAL_SYMBOLS / CANONICAL_SYMBOL_MAP:
        Symbol names accepted by alias configuration, and the default word aliases.
"""

from enum import Enum


class Symbol(Enum):
    OPEN_PARENS = "("
    CLOSE_PARENS = ")"
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "^"
    FACTORIAL = "!"
    BACKSLASH = "\\"
    DOT = "."
    FN = "=>"
    EQUALS = "="
    SEMICOLON = ";"
    UNIT_CONVERSION = "to"
    OF = "of"

    def __str__(self) -> str:
        return self.value


token_hashmap: dict[str, Symbol] = {
    "(": Symbol.OPEN_PARENS,
    ")": Symbol.CLOSE_PARENS,
    "+": Symbol.ADD,
    "-": Symbol.SUB,
    "−": Symbol.SUB,  # unicode minus
    "*": Symbol.MUL,
    "×": Symbol.MUL,
    "/": Symbol.DIV,
    "÷": Symbol.DIV,
    "%": Symbol.MOD,
    "^": Symbol.POW,
    "**": Symbol.POW,
    "!": Symbol.FACTORIAL,
    "\\": Symbol.BACKSLASH,
    "λ": Symbol.BACKSLASH,
    ".": Symbol.DOT,
    "=>": Symbol.FN,
    ":": Symbol.FN,
    "=": Symbol.EQUALS,
    ";": Symbol.SEMICOLON,
}

# Words the lexer turns into symbols instead of identifiers
keyword_hashmap: dict[str, Symbol] = {
    "to": Symbol.UNIT_CONVERSION,
    "as": Symbol.UNIT_CONVERSION,
    "of": Symbol.OF,
    "per": Symbol.DIV,
    "mod": Symbol.MOD,
}

PREFIX_UNITS: frozenset[str] = frozenset(
    {"$", "£", "€", "¥", "₹", "₩", "₽"}
)

CANONICAL_SYMBOLS: list[str] = [s.name for s in Symbol]

# Default word aliases preloaded by UserInterfaceMapper.from_canonical()
CANONICAL_SYMBOL_MAP: dict[str, str] = {
    "plus": "ADD",
    "minus": "SUB",
    "times": "MUL",
    "over": "DIV",
    "divided_by": "DIV",
    "modulo": "MOD",
    "into": "UNIT_CONVERSION",
}

__all__ = [
    "CANONICAL_SYMBOLS",
    "CANONICAL_SYMBOL_MAP",
    "PREFIX_UNITS",
    "Symbol",
    "keyword_hashmap",
    "token_hashmap",
]
