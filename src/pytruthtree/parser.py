"""Statement parsing for truth trees.

Implements a recursive descent parser for first-order statements. Both the
Unicode connectives and their ASCII spellings are accepted.

Grammar (informal, precedence from low to high):
    statement  ::= bicond
    bicond     ::= cond ( ('↔' | '<->') cond )*           (left-assoc, lowest)
    cond       ::= disj ( ('→' | '->') cond )?             (right-assoc)
    disj       ::= conj ( ('∨' | '|') conj )*              (left-assoc)
    conj       ::= unary ( ('∧' | '&') unary )*            (left-assoc)
    unary      ::= ('¬' | '~') unary | quantifier | '(' statement ')' | atom
    quantifier ::= ('∀' | 'forall' | '∃' | 'exists') var (',' var)* unary
    atom       ::= IDENT ( '(' term (',' term)* ')' )?
    term       ::= IDENT ( '(' term (',' term)* ')' )?
"""

from __future__ import annotations

import re

from pytruthtree.syntax import (
    And,
    Atomic,
    Biconditional,
    Conditional,
    Existence,
    Formula,
    Not,
    Or,
    Statement,
    Universal,
)

# Token kinds
IFF = "iff"
IMPLIES = "implies"
AND = "and"
OR = "or"
NOT = "not"
FORALL = "forall"
EXISTS = "exists"
LPAREN = "("
RPAREN = ")"
COMMA = ","
IDENT = "ident"

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<iff><->|↔)"
    r"|(?P<implies>->|→)"
    r"|(?P<and>&|∧)"
    r"|(?P<or>\||∨)"
    r"|(?P<not>~|¬)"
    r"|(?P<forall>∀)"
    r"|(?P<exists>∃)"
    r"|(?P<punct>[(),])"
    r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r")"
)

_KEYWORDS = {"forall": FORALL, "exists": EXISTS}


class ParseError(ValueError):
    """Raised when text cannot be parsed into a statement."""


def tokenize(text: str) -> list[tuple[str, str]]:
    """Split *text* into ``(kind, value)`` tokens."""
    tokens: list[tuple[str, str]] = []
    pos = 0
    end = len(text.rstrip())
    while pos < end:
        m = _TOKEN_RE.match(text, pos)
        if m is None or m.end() == pos:
            raise ParseError(f"Unexpected character {text[pos:].strip()[:1]!r} in: {text!r}")
        kind = m.lastgroup
        value = m.group(kind)  # type: ignore[arg-type]
        if kind == "punct":
            kind = value
        elif kind == "ident" and value in _KEYWORDS:
            kind = _KEYWORDS[value]
        tokens.append((kind, value))  # type: ignore[arg-type]
        pos = m.end()
    return tokens


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    def _peek(self) -> str | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos][0]
        return None

    def _next(self, expected: str | None = None) -> str:
        if self.pos >= len(self.tokens):
            raise ParseError(f"Unexpected end of statement: {self.text!r}")
        kind, value = self.tokens[self.pos]
        if expected is not None and kind != expected:
            raise ParseError(f"Expected {expected!r} but found {value!r} in: {self.text!r}")
        self.pos += 1
        return value

    def parse(self) -> Statement:
        if not self.tokens:
            raise ParseError("Cannot parse empty statement")
        statement = self._bicond()
        if self.pos != len(self.tokens):
            raise ParseError(
                f"Unexpected {self.tokens[self.pos][1]!r} in: {self.text!r}"
            )
        return statement

    def _bicond(self) -> Statement:
        left = self._cond()
        while self._peek() == IFF:
            self._next()
            left = Biconditional(left, self._cond())
        return left

    def _cond(self) -> Statement:
        left = self._disj()
        if self._peek() == IMPLIES:
            self._next()
            return Conditional(left, self._cond())
        return left

    def _disj(self) -> Statement:
        left = self._conj()
        while self._peek() == OR:
            self._next()
            left = Or(left, self._conj())
        return left

    def _conj(self) -> Statement:
        left = self._unary()
        while self._peek() == AND:
            self._next()
            left = And(left, self._unary())
        return left

    def _unary(self) -> Statement:
        kind = self._peek()
        if kind == NOT:
            self._next()
            return Not(self._unary())
        if kind in (FORALL, EXISTS):
            self._next()
            variables = [self._next(IDENT)]
            while self._peek() == COMMA:
                self._next()
                variables.append(self._next(IDENT))
            if len(set(variables)) != len(variables):
                raise ParseError(f"Repeated quantifier variable in: {self.text!r}")
            body = self._unary()
            if kind == FORALL:
                return Universal(tuple(variables), body)
            return Existence(tuple(variables), body)
        if kind == LPAREN:
            self._next()
            statement = self._bicond()
            self._next(RPAREN)
            return statement
        name = self._next(IDENT)
        return Atomic(name, self._arguments())

    def _arguments(self) -> tuple[Formula, ...]:
        if self._peek() != LPAREN:
            return ()
        self._next()
        args = [self._term()]
        while self._peek() == COMMA:
            self._next()
            args.append(self._term())
        self._next(RPAREN)
        return tuple(args)

    def _term(self) -> Formula:
        name = self._next(IDENT)
        return Formula(name, self._arguments())


def parse_statement(text: str) -> Statement:
    """Parse a string into a Statement AST.

    Examples:
        >>> str(parse_statement("forall x (P(x) -> Q(x))"))
        '∀x (P(x) → Q(x))'
        >>> str(parse_statement("~A & B"))
        '(¬A ∧ B)'

    Raises:
        ParseError: if *text* is empty or not a well-formed statement.
    """
    return _Parser(text).parse()
