"""
TALLY Expression Parser

Turns a token sequence into an expression tree (`ASTNode`) that a separate evaluator
executes. The grammar allows juxtaposition (no operator) to mean function application,
implicit multiplication, prefix-unit attachment, mixed-fraction notation, or compound
quantities. The parser picks an interpretation from the shapes of the sub-expressions
it has already built, with limited lookahead and fallback between candidates.

Precedence (loosest first)
--------------------------
- statements         `a; b`            (leading/trailing/repeated `;` skipped)
- assignment         `a = b = 3`       (right-associative, identifier on the left)
- function           `x => x + 1`      (identifier on the left)
- additive           `+`, `-`, `to`    (left-associative; `to` builds an `as` node)
- implicit addition  `6 feet 1 inch`
- multiplicative     `*`, `/`, `%`, mixed fractions, juxtaposition
- power              `^`               (right-associative; prefix `-`, `+`, `/`)
- factorial          `5!!`
- primary            numbers, strings, identifiers, `name of x`, `( ... )`, `\\x.body`

Juxtaposition rules
-------------------
With `lhs` already parsed and `rhs` the next power-level term (prefix operators
disallowed):
    number-like lhs, number rhs            -> rejected (mixed fraction / implicit addition)
    number-like lhs, rhs = number ^ _      -> rejected
    prefix unit, number                    -> apply            `$5`
    anything, number                       -> apply_function_call   `sin 30`
    number or apply_mul, anything          -> apply_mul        `2 meters`
    otherwise                              -> apply            `f x`
where number-like means a number literal, a negated number literal, or an apply_mul.

Backtracking
------------
Every `parse_*` method takes a cursor (an index into the token tuple) and returns
`(node, new_cursor)`. Candidates are attempted on the unmodified cursor and a failed
candidate is simply discarded, so the parser holds no mutable state.

Entry Points
------------
- `Parser(tokens).parse()`: parse a complete token sequence.
- `parse_tokens(tokens)`: functional wrapper around `Parser.parse`.
- `parse_source(source)`: lex with the reference lexer, then parse.

Raises
------
ParseError
    Raised (as one of its subclasses) on malformed input. The parser never returns a
    partial tree alongside an error.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tally.tally_ast import (
    ASTNode,
    bop,
    ident,
    is_bop,
    is_negated_number,
    is_number,
    named,
    number,
    pair,
    string,
    unit_literal,
    wrap,
)
from tally.tally_constants import PREFIX_UNITS, Symbol
from tally.tally_errors import (
    ExpectedATokenError,
    ExpectedDotInLambdaError,
    ExpectedIdentifierAsArgumentError,
    ExpectedIdentifierError,
    ExpectedIdentifierInAssignmentError,
    ExpectedNumberError,
    ExpectedTokenError,
    ExpressionTooDeepError,
    FoundInvalidTokenError,
    InvalidApplyOperandsError,
    InvalidMixedFractionError,
    ParseError,
    UnexpectedInputError,
    UnexpectedSymbolError,
    UnexpectedWhitespaceError,
)
from tally.tally_lexer import Token, tokenize

logger = logging.getLogger(__name__)

ParseResult = tuple[ASTNode, int]

_UNARY_PREFIXES = (
    (Symbol.SUB, "unary_minus"),
    (Symbol.ADD, "unary_plus"),
    # /a^b parses as (1/a)^b, which equals 1/(a^b)
    (Symbol.DIV, "unary_div"),
)

_MULTIPLICATIVE_OPS = (
    (Symbol.MUL, "Mul"),
    (Symbol.DIV, "Div"),
    (Symbol.MOD, "Mod"),
)

_ADDITIVE_OPS = (
    (Symbol.ADD, "Plus"),
    (Symbol.SUB, "Minus"),
    (Symbol.UNIT_CONVERSION, None),
)


class Parser:
    """
    TALLY Parser Class

    Holds an immutable token sequence and the set of identifiers that act as prefix
    units. All parsing methods are pure functions of a cursor position.

    Attributes
    ----------
    tokens : tuple[Token, ...]
        The input token sequence (any EOF tokens are dropped).
    prefix_units : frozenset[str]
        Identifiers that attach to a following number by application, e.g. `$`.

    Methods
    -------
    parse() -> ASTNode
        Parse the whole token sequence; trailing input is an error.
    parse_expression(pos) -> (ASTNode, int)
        Parse statements starting at `pos`, leaving any remainder.
    """

    def __init__(
        self, tokens: Iterable[Token], prefix_units: Iterable[str] = PREFIX_UNITS
    ) -> None:
        self.tokens: tuple[Token, ...] = tuple(t for t in tokens if t.type != "EOF")
        self.prefix_units: frozenset[str] = frozenset(prefix_units)

    # Cursor helpers

    def next_token(self, pos: int, skip_whitespace: bool = True) -> tuple[Token, int]:
        """Returns the token at `pos` and the cursor after it.

        Raises:
            ExpectedATokenError: If the input ends before a token is found.
        """
        while True:
            if pos >= len(self.tokens):
                raise ExpectedATokenError()
            tok = self.tokens[pos]
            if skip_whitespace and tok.type == "WHITESPACE":
                pos += 1
                continue
            return tok, pos + 1

    def peek(self, pos: int) -> Token | None:
        """Returns the next non-whitespace token without consuming it."""
        while pos < len(self.tokens):
            if self.tokens[pos].type != "WHITESPACE":
                return self.tokens[pos]
            pos += 1
        return None

    def at_end(self, pos: int) -> bool:
        return self.peek(pos) is None

    def match(self, pos: int, symbol: Symbol) -> int:
        """Consumes `symbol` and returns the new cursor.

        Raises:
            ExpectedTokenError: If a different symbol is found.
            FoundInvalidTokenError: If a non-symbol token is found.
        """
        tok, after = self.next_token(pos)
        if tok.type == "SYMBOL":
            if tok.value is symbol:
                return after
            raise ExpectedTokenError(tok.value, symbol, tok)
        raise FoundInvalidTokenError(symbol, tok)

    def check(self, pos: int, symbol: Symbol) -> int | None:
        """Like `match`, but returns None instead of raising."""
        tok = self.peek(pos)
        if tok is None or tok.type != "SYMBOL" or tok.value is not symbol:
            return None
        return self.match(pos, symbol)

    # Entry points

    def parse(self) -> ASTNode:
        """Parse the full token sequence into a single tree.

        Raises:
            UnexpectedInputError: If tokens remain after a complete expression.
            ExpressionTooDeepError: If nesting exceeds the interpreter's stack.
        """
        try:
            res, pos = self.parse_expression(0)
        except RecursionError as e:
            raise ExpressionTooDeepError() from e
        if not self.at_end(pos):
            raise UnexpectedInputError(self.peek(pos))
        return res

    def parse_expression(self, pos: int) -> ParseResult:
        return self.parse_statements(pos)

    # Primary layer

    def parse_number(self, pos: int) -> ParseResult:
        tok, after = self.next_token(pos)
        if tok.type != "NUMBER":
            raise ExpectedNumberError(tok)
        return number(tok.value, tok.line, tok.col), after

    def parse_ident(self, pos: int) -> ParseResult:
        """Parse an identifier, upgraded to `name of inner` when `of` follows."""
        tok, after = self.next_token(pos)
        if tok.type != "IDENT":
            raise ExpectedIdentifierError(tok)
        of_pos = self.check(after, Symbol.OF)
        if of_pos is not None:
            inner, after = self.parse_primary(of_pos)
            return named("of", tok.value, inner, tok.line, tok.col), after
        return ident(tok.value, tok.line, tok.col), after

    def parse_parens(self, pos: int) -> ParseResult:
        """Parse `( expr )`; the closing paren may be omitted at end of input."""
        open_tok, _ = self.next_token(pos)
        pos = self.match(pos, Symbol.OPEN_PARENS)
        close_pos = self.check(pos, Symbol.CLOSE_PARENS)
        if close_pos is not None:
            return unit_literal(open_tok.line, open_tok.col), close_pos
        inner, pos = self.parse_expression(pos)
        if not self.at_end(pos):
            pos = self.match(pos, Symbol.CLOSE_PARENS)
        return wrap("parens", inner, open_tok.line, open_tok.col), pos

    def parse_backslash_lambda(self, pos: int) -> ParseResult:
        """Parse `\\x.body`. The parameter must follow the backslash directly."""
        lambda_tok, _ = self.next_token(pos)
        pos = self.match(pos, Symbol.BACKSLASH)
        param, pos = self.next_token(pos, skip_whitespace=False)
        if param.type == "WHITESPACE":
            raise UnexpectedWhitespaceError(param)
        if param.type != "IDENT":
            raise ExpectedIdentifierError(param)
        try:
            pos = self.match(pos, Symbol.DOT)
        except ParseError as e:
            raise ExpectedDotInLambdaError(e) from e
        body, pos = self.parse_function(pos)
        return named("fn", param.value, body, lambda_tok.line, lambda_tok.col), pos

    def parse_primary(self, pos: int) -> ParseResult:
        tok, after = self.next_token(pos)

        if tok.type == "NUMBER":
            return self.parse_number(pos)
        if tok.type == "IDENT":
            return self.parse_ident(pos)
        if tok.type == "STRING":
            return string(tok.value, tok.line, tok.col), after
        if tok.type == "SYMBOL":
            if tok.value is Symbol.OPEN_PARENS:
                return self.parse_parens(pos)
            if tok.value is Symbol.BACKSLASH:
                return self.parse_backslash_lambda(pos)
            raise UnexpectedSymbolError(tok.value, tok)
        raise UnexpectedInputError(tok)

    # Factorial / power layer

    def parse_factorial(self, pos: int) -> ParseResult:
        res, pos = self.parse_primary(pos)
        while True:
            after = self.check(pos, Symbol.FACTORIAL)
            if after is None:
                break
            res = wrap("factorial", res)
            pos = after
        return res, pos

    def parse_power(self, pos: int, allow_unary: bool = True) -> ParseResult:
        """Parse `a ^ b` (right-associative) with optional prefix `-`, `+`, `/`.

        A prefix operator wraps the entire power expression after it, so `-2^2`
        is `unary_minus(2 ^ 2)`.
        """
        if allow_unary:
            for symbol, kind in _UNARY_PREFIXES:
                after = self.check(pos, symbol)
                if after is not None:
                    op_tok, _ = self.next_token(pos)
                    inner, after = self.parse_power(after, allow_unary=True)
                    return wrap(kind, inner, op_tok.line, op_tok.col), after

        res, pos = self.parse_factorial(pos)
        after = self.check(pos, Symbol.POW)
        if after is not None:
            rhs, pos = self.parse_power(after, allow_unary=True)
            res = bop("Pow", res, rhs)
        return res, pos

    # Multiplicative layer

    def parse_apply_cont(self, pos: int, lhs: ASTNode) -> ParseResult:
        """Interpret juxtaposition of `lhs` with the next term.

        Raises:
            InvalidApplyOperandsError: If the pair is reserved for mixed fractions
                or implicit addition.
        """
        rhs, pos = self.parse_power(pos, allow_unary=False)

        number_like = (
            is_number(lhs) or is_negated_number(lhs) or lhs.kind == "apply_mul"
        )
        if number_like and is_number(rhs):
            # may later become a mixed fraction (1 2/3) or a sum (6 feet 1 inch)
            raise InvalidApplyOperandsError()
        if number_like and is_bop(rhs, "Pow") and is_number(rhs.children[0]):
            raise InvalidApplyOperandsError()

        if is_number(rhs):
            if lhs.kind == "identifier" and lhs.value in self.prefix_units:
                kind = "apply"
            else:
                kind = "apply_function_call"
        elif is_number(lhs) or lhs.kind == "apply_mul":
            kind = "apply_mul"
        else:
            kind = "apply"
        return pair(kind, lhs, rhs), pos

    def parse_mixed_fraction(self, pos: int, lhs: ASTNode) -> ParseResult:
        """Parse `whole numerator/denominator` continuing from `lhs`.

        `lhs` may be a number, a negated number, or `other * <either>`; in the last
        case `other` stays an outer factor of the result.

        Raises:
            InvalidMixedFractionError: If `lhs` or the fraction has the wrong shape.
        """
        outer: ASTNode | None = None
        whole = lhs
        if is_bop(lhs, "Mul"):
            outer, whole = lhs.children
        if not (is_number(whole) or is_negated_number(whole)):
            raise InvalidMixedFractionError()
        positive = is_number(whole)
        nxt = self.peek(pos)
        if nxt is None or nxt.type != "NUMBER":
            raise InvalidMixedFractionError()

        top, pos = self.parse_power(pos, allow_unary=False)
        if not is_number(top):
            raise InvalidMixedFractionError()
        pos = self.match(pos, Symbol.DIV)
        bottom, pos = self.parse_power(pos, allow_unary=False)
        if not is_number(bottom):
            raise InvalidMixedFractionError()

        fraction = bop("Div", top, bottom)
        res = bop("Plus" if positive else "Minus", whole, fraction)
        if outer is not None:
            res = bop("Mul", outer, res)
        return res, pos

    def parse_multiplicative_cont(self, pos: int, lhs: ASTNode) -> ParseResult | None:
        """Try each continuation of `lhs` in priority order.

        Returns the first successful `(node, cursor)`, or None when no continuation
        applies. Failures of individual candidates never escape.
        """
        for symbol, op in _MULTIPLICATIVE_OPS:
            after = self.check(pos, symbol)
            if after is None:
                continue
            try:
                rhs, after = self.parse_power(after, allow_unary=True)
            except ParseError as e:
                logger.debug("operand of %s rejected at %d: %s", symbol, pos, e)
                continue
            return bop(op, lhs, rhs), after

        for candidate in (self.parse_mixed_fraction, self.parse_apply_cont):
            try:
                return candidate(pos, lhs)
            except ParseError as e:
                logger.debug("%s rejected at %d: %s", candidate.__name__, pos, e)
        return None

    def parse_multiplicative(self, pos: int) -> ParseResult:
        res, pos = self.parse_power(pos, allow_unary=True)
        while True:
            step = self.parse_multiplicative_cont(pos, res)
            if step is None:
                break
            res, pos = step
        return res, pos

    # Additive layer

    def parse_implicit_addition(self, pos: int) -> ParseResult:
        """Parse compound quantities such as `6 feet 1 inch` or `1 m 20 cm 5 mm`."""
        res, pos = self.parse_multiplicative(pos)
        if res.kind != "apply_mul":
            return res, pos
        try:
            rhs, after = self.parse_implicit_addition(pos)
        except ParseError:
            return res, pos
        if rhs.kind in ("apply_mul", "literal") or is_bop(rhs, "ImplicitPlus"):
            return bop("ImplicitPlus", res, rhs), after
        return res, pos

    def parse_additive(self, pos: int) -> ParseResult:
        res, pos = self.parse_implicit_addition(pos)
        while True:
            for symbol, op in _ADDITIVE_OPS:
                after = self.check(pos, symbol)
                if after is None:
                    continue
                try:
                    rhs, after = self.parse_implicit_addition(after)
                except ParseError as e:
                    logger.debug("operand of %s rejected at %d: %s", symbol, pos, e)
                    continue
                res = bop(op, res, rhs) if op else pair("as", res, rhs)
                pos = after
                break
            else:
                return res, pos

    # Function / assignment / statements layer

    def parse_function(self, pos: int) -> ParseResult:
        """Parse `x => body` (also `x: body`); only a bare identifier may precede the arrow."""
        lhs, pos = self.parse_additive(pos)
        after = self.check(pos, Symbol.FN)
        if after is None:
            return lhs, pos
        if lhs.kind != "identifier":
            raise ExpectedIdentifierAsArgumentError(self.peek(pos))
        body, after = self.parse_function(after)
        return named("fn", lhs.value, body, lhs.line, lhs.col), after

    def parse_assignment(self, pos: int) -> ParseResult:
        lhs, pos = self.parse_function(pos)
        after = self.check(pos, Symbol.EQUALS)
        if after is None:
            return lhs, pos
        if lhs.kind != "identifier":
            raise ExpectedIdentifierInAssignmentError(self.peek(pos))
        rhs, after = self.parse_assignment(after)
        return named("assign", lhs.value, rhs, lhs.line, lhs.col), after

    def parse_statements(self, pos: int) -> ParseResult:
        """Parse `;`-separated statements into left-nested `statements` nodes.

        Empty input, or input made only of `;`, yields the unit literal.
        """
        while True:
            after = self.check(pos, Symbol.SEMICOLON)
            if after is None:
                break
            pos = after
        if self.at_end(pos):
            return unit_literal(), len(self.tokens)

        res, pos = self.parse_assignment(pos)
        while True:
            after = self.check(pos, Symbol.SEMICOLON)
            if after is None:
                break
            if self.at_end(after) or self.check(after, Symbol.SEMICOLON) is not None:
                pos = after
                continue
            rhs, pos = self.parse_assignment(after)
            res = pair("statements", res, rhs)
        return res, pos


def parse_tokens(
    tokens: Iterable[Token], prefix_units: Iterable[str] = PREFIX_UNITS
) -> ASTNode:
    """Parse a complete token sequence. See `Parser.parse`."""
    return Parser(tokens, prefix_units).parse()


def parse_source(source: str, prefix_units: Iterable[str] = PREFIX_UNITS) -> ASTNode:
    """Lex `source` with the reference lexer and parse the result.

    Raises:
        LexError: If the source cannot be tokenized.
        ParseError: If the tokens do not form a valid expression.
    """
    return parse_tokens(tokenize(source, prefix_units), prefix_units)


__all__ = ["ParseResult", "Parser", "parse_source", "parse_tokens"]
