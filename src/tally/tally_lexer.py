"""
Reference lexer for the TALLY calculator language.

The parser treats tokenisation as an upstream collaborator: it only relies on the
token contract below. This module provides a compact implementation of that
contract so the CLI and REPL can accept raw text.

Classes:
    CharacterStream: Cursor over the source text with line/column tracking.
    Token: One token with type, value, and source position.
    Lexer: Converts a CharacterStream into tokens.

Token types:
    NUMBER      value is an exact `fractions.Fraction`
    IDENT       value is the identifier text
    STRING      value is the decoded string contents
    SYMBOL      value is a `Symbol`
    WHITESPACE  value is the raw run of blanks (comments fold into it)
    ERROR       value is the offending character
    EOF         end of input

Raises:
    LexError: On malformed numbers, unterminated strings, or (from `tokenize`)
        characters that do not start any token.

Example:
    >>> [t.type for t in tokenize("2 m")]
    ['NUMBER', 'WHITESPACE', 'IDENT']
"""

from collections.abc import Iterable
from dataclasses import dataclass
from fractions import Fraction
from typing import Any

from tally.tally_constants import PREFIX_UNITS, keyword_hashmap, token_hashmap
from tally.tally_errors import LexError

_BLANKS = " \t\r\n"
_QUOTES = "\"'"
_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"', "'": "'"}
_LONGEST_OPERATOR = max(len(spelling) for spelling in token_hashmap)


class CharacterStream:
    """Reads a source string one character at a time.

    Attributes:
        source (str): The text being read.
        position (int): Index of the next unread character.
        line (int): 1-based line of the next unread character.
        column (int): 1-based column of the next unread character.
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """Consumes one character.

        Raises:
            LexError: If the stream is exhausted.
        """
        if self.end_of_file():
            raise LexError("Attempted to read past end of source", self.line, self.column)
        ch = self.source[self.position]
        self.position += 1
        if ch == "\n":
            self.line, self.column = self.line + 1, 1
        else:
            self.column += 1
        return ch

    def peek(self, offset: int = 0) -> str:
        """The character `offset` places ahead, or "" outside the source."""
        index = self.position + offset
        return self.source[index] if 0 <= index < len(self.source) else ""

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


@dataclass(frozen=True, repr=False)
class Token:
    """A lexical token; `value` is a Fraction, a Symbol, or text depending on `type`."""

    type: str
    value: Any
    line: int = 0
    col: int = 0

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r})"


def _is_word_start(ch: str) -> bool:
    return (ch.isalpha() or ch == "_") and ch not in token_hashmap


def _is_word_char(ch: str) -> bool:
    return (ch.isalnum() or ch == "_") and ch not in token_hashmap


class Lexer:
    """Lexical analyzer for the TALLY language.

    Attributes:
        stream (CharacterStream): The source being tokenized.
        symbol_units (list[str]): Prefix units that are not words (`$`, `€`),
            longest first. Word-shaped units lex as ordinary identifiers.
    """

    def __init__(
        self, stream: CharacterStream, prefix_units: Iterable[str] = PREFIX_UNITS
    ) -> None:
        self.stream = stream
        self.symbol_units = sorted(
            (unit for unit in prefix_units if unit and not _is_word_start(unit[0])),
            key=len,
            reverse=True,
        )

    def _take_while(self, pred: Any) -> str:
        text = ""
        while pred(self.stream.peek()):
            text += self.stream.next()
        return text

    def read_whitespace(self) -> str:
        """Consumes blanks and `#` comments up to the next meaningful character."""
        text = ""
        while True:
            ch = self.stream.peek()
            if ch and ch in _BLANKS:
                text += self.stream.next()
            elif ch == "#":
                text += self._take_while(lambda c: c not in ("", "\n"))
            else:
                return text

    def match_operator(self) -> Token | None:
        """Matches the longest operator spelling at the cursor, if any."""
        line, col = self.stream.line, self.stream.column
        for size in range(_LONGEST_OPERATOR, 0, -1):
            spelling = "".join(self.stream.peek(i) for i in range(size))
            if len(spelling) == size and spelling in token_hashmap:
                for _ in spelling:
                    self.stream.next()
                return Token("SYMBOL", token_hashmap[spelling], line, col)
        return None

    def match_prefix_unit(self) -> Token | None:
        line, col = self.stream.line, self.stream.column
        for unit in self.symbol_units:
            if all(self.stream.peek(i) == ch for i, ch in enumerate(unit)):
                for _ in unit:
                    self.stream.next()
                return Token("IDENT", unit, line, col)
        return None

    def read_number(self) -> str:
        """Reads `digits[.digits][e[+-]digits]` and returns the text."""
        line, col = self.stream.line, self.stream.column
        text = self._take_while(str.isdecimal)
        while self.stream.peek() == "." and self.stream.peek(1).isdecimal():
            if "." in text:
                raise LexError("Invalid number format", line, col)
            text += self.stream.next() + self._take_while(str.isdecimal)
        if self.stream.peek() in ("e", "E"):
            sign = self.stream.peek(1)
            if sign.isdecimal():
                text += self.stream.next()
            elif sign in ("+", "-") and self.stream.peek(2).isdecimal():
                text += self.stream.next() + self.stream.next()
            text += self._take_while(str.isdecimal)
        return text

    def read_string(self) -> str:
        line, col = self.stream.line, self.stream.column
        quote = self.stream.next()
        chars: list[str] = []
        while not self.stream.end_of_file():
            ch = self.stream.next()
            if ch == quote:
                return "".join(chars)
            if ch == "\\" and not self.stream.end_of_file():
                esc = self.stream.next()
                chars.append(_ESCAPES.get(esc, "\\" + esc))
            else:
                chars.append(ch)
        raise LexError("Unterminated string", line, col)

    def next_token(self) -> Token:
        """Consumes and returns the next Token; EOF once the source is exhausted.

        Raises:
            LexError: On a malformed number or an unterminated string.
        """
        line, col = self.stream.line, self.stream.column
        ch = self.stream.peek()
        if not ch:
            return Token("EOF", "EOF", line, col)
        if ch in _BLANKS or ch == "#":
            return Token("WHITESPACE", self.read_whitespace(), line, col)
        if _is_word_start(ch):
            word = self._take_while(_is_word_char)
            if word in keyword_hashmap:
                return Token("SYMBOL", keyword_hashmap[word], line, col)
            return Token("IDENT", word, line, col)
        if ch.isdecimal():
            return Token("NUMBER", Fraction(self.read_number()), line, col)
        unit = self.match_prefix_unit()
        if unit is not None:
            return unit
        if ch in _QUOTES:
            return Token("STRING", self.read_string(), line, col)
        return self.match_operator() or Token("ERROR", self.stream.next(), line, col)


def tokenize(source: str, prefix_units: Iterable[str] = PREFIX_UNITS) -> list[Token]:
    """Lexes `source` into a token list without the trailing EOF.

    `prefix_units` is the full set of prefix units; the symbol-style ones
    (`$`, a configured `"₿"`) become single IDENT tokens.

    Raises:
        LexError: If the source contains a character that starts no token.
    """
    lexer = Lexer(CharacterStream(source), prefix_units)
    tokens: list[Token] = []
    while True:
        tok = lexer.next_token()
        if tok.type == "EOF":
            break
        if tok.type == "ERROR":
            raise LexError(f"Unexpected character {tok.value!r}", tok.line, tok.col)
        tokens.append(tok)
    return tokens


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize"]
