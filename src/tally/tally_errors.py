"""
Error taxonomy for the TALLY toolchain.

Classes:
    TallyError:
        Base class shown to users by the CLI and REPL. Wraps an optional cause.

    LexError:
        Raised by the reference lexer on malformed numbers, strings, or characters.

    ParseError:
        Base class of every structural failure raised by the parser. Each subclass
        keeps the structured pieces of its message (symbols, positions, causes) as
        attributes so callers can inspect them without parsing the text.

Notes:
    `InvalidApplyOperandsError` and `InvalidMixedFractionError` are control-flow
    signals of the multiplicative layer. They are always caught there and never
    reach `Parser.parse()` callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tally.tally_constants import Symbol
    from tally.tally_lexer import Token


class TallyError(Exception):
    """Top-level error reported to an interactive shell.

    Attributes:
        cause (Exception | None): The underlying error, when this one wraps another.
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class LexError(TallyError):
    def __init__(self, message: str, line: int = 0, col: int = 0):
        super().__init__(f"{message} at line {line}, col {col}")
        self.line = line
        self.col = col


class ParseError(TallyError):
    """Base class for parser failures.

    Args:
        message: Human-readable description.
        token: The offending token, if one was available. Its position is
            appended to the message.
    """

    def __init__(self, message: str, token: Token | None = None):
        if token is not None and token.line:
            message = f"{message} at line {token.line}, col {token.col}"
        super().__init__(message)
        self.token = token


class ExpectedATokenError(ParseError):
    def __init__(self) -> None:
        super().__init__("expected a token")


class ExpectedTokenError(ParseError):
    def __init__(self, found: Symbol, expected: Symbol, token: Token | None = None):
        super().__init__(f"found '{found}' while expecting '{expected}'", token)
        self.found = found
        self.expected = expected


class FoundInvalidTokenError(ParseError):
    def __init__(self, expected: Symbol, token: Token | None = None):
        super().__init__(
            f"found an invalid token while expecting '{expected}'", token
        )
        self.expected = expected


class ExpectedNumberError(ParseError):
    def __init__(self, token: Token | None = None):
        super().__init__("expected a number", token)


class ExpectedIdentifierError(ParseError):
    def __init__(self, token: Token | None = None):
        super().__init__("expected an identifier", token)


class ExpectedIdentifierAsArgumentError(ExpectedIdentifierError):
    pass


class ExpectedIdentifierInAssignmentError(ExpectedIdentifierError):
    pass


class UnexpectedSymbolError(ParseError):
    def __init__(self, symbol: Symbol, token: Token | None = None):
        super().__init__(f"expected a value, instead found '{symbol}'", token)
        self.symbol = symbol


class UnexpectedWhitespaceError(ParseError):
    def __init__(self, token: Token | None = None):
        super().__init__("unexpected whitespace", token)


class ExpectedDotInLambdaError(ParseError):
    """Raised when `\\x` is not followed by `.`; wraps the token-level failure."""

    def __init__(self, cause: ParseError):
        super().__init__("missing '.' in lambda (expected e.g. \\x.x)", cause.token)
        self.cause = cause


class InvalidMixedFractionError(ParseError):
    def __init__(self) -> None:
        super().__init__("invalid mixed fraction")


class InvalidApplyOperandsError(ParseError):
    def __init__(self) -> None:
        super().__init__("juxtaposition reserved for another rule")


class UnexpectedInputError(ParseError):
    def __init__(self, token: Token | None = None):
        super().__init__("unexpected input found", token)


class ExpressionTooDeepError(ParseError):
    def __init__(self) -> None:
        super().__init__("expression is nested too deeply")


__all__ = [
    "ExpectedATokenError",
    "ExpectedDotInLambdaError",
    "ExpectedIdentifierAsArgumentError",
    "ExpectedIdentifierError",
    "ExpectedIdentifierInAssignmentError",
    "ExpectedNumberError",
    "ExpectedTokenError",
    "ExpressionTooDeepError",
    "FoundInvalidTokenError",
    "InvalidApplyOperandsError",
    "InvalidMixedFractionError",
    "LexError",
    "ParseError",
    "TallyError",
    "UnexpectedInputError",
    "UnexpectedSymbolError",
    "UnexpectedWhitespaceError",
]
