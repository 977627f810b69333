"""First-order statement model for truth trees.

Statements are immutable AST nodes. Each variant knows how it must be
decomposed in a truth tree, which constants it introduces into the universe
of discourse, and (for quantifiers) how to recognise its own instantiations.

Variants::

    Atomic         P, P(a), R(a, f(b))
    Not            ¬φ
    And            (φ ∧ ψ)
    Or             (φ ∨ ψ)
    Conditional    (φ → ψ)
    Biconditional  (φ ↔ ψ)
    Existence      ∃x φ
    Universal      ∀x φ

Terms are ``Formula`` objects. A zero-argument formula is a variable when an
enclosing quantifier binds its name and a constant otherwise.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Formula:
    """Immutable term: a constant, a variable, or a function application.

    Attributes:
        name: The symbol name.
        args: Argument terms (empty for constants and variables).
    """

    name: str
    args: tuple[Formula, ...] = ()

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}({', '.join(str(a) for a in self.args)})"

    def constants(self, bound: frozenset[str]) -> Iterator[Formula]:
        """Yield the constants occurring in this term, outermost first."""
        if not self.args:
            if self.name not in bound:
                yield self
            return
        for arg in self.args:
            yield from arg.constants(bound)


def _match_term(
    pattern: Formula,
    term: Formula,
    variables: frozenset[str],
    assignment: dict[str, Formula],
) -> bool:
    """Match *term* against *pattern*, binding placeholder variables consistently."""
    if not pattern.args and pattern.name in variables:
        bound = assignment.get(pattern.name)
        if bound is None:
            assignment[pattern.name] = term
            return True
        return bound == term
    if pattern.name != term.name or len(pattern.args) != len(term.args):
        return False
    return all(
        _match_term(p, t, variables, assignment)
        for p, t in zip(pattern.args, term.args)
    )


def _canonical(branches: Sequence[Sequence[Statement]]) -> list[list[str]]:
    return sorted(sorted(str(s) for s in branch) for branch in branches)


class Statement:
    """Base class for every statement variant."""

    __slots__ = ()

    def equals(self, other: object) -> bool:
        return self == other

    def decompose(self) -> list[list[Statement]]:
        """Return the branches a correct decomposition of this statement produces.

        An empty list means the statement needs no decomposition.
        """
        return []

    def has_decomposition(self, branches: Sequence[Sequence[Statement]]) -> bool:
        """Return True if *branches* is exactly what ``decompose()`` requires.

        Branch order and statement order within a branch are ignored.
        """
        return _canonical(branches) == _canonical(self.decompose())

    def is_literal(self) -> bool:
        return False

    def get_new_constants(self, universe: Sequence[Formula]) -> list[Formula]:
        """Return constants in this statement not already in *universe*.

        The result keeps first-occurrence order and holds no duplicates.
        """
        seen = set(universe)
        new: list[Formula] = []
        for constant in self._constants(frozenset()):
            if constant not in seen:
                seen.add(constant)
                new.append(constant)
        return new

    def _constants(self, bound: frozenset[str]) -> Iterator[Formula]:
        raise NotImplementedError

    def _match(
        self,
        other: Statement,
        variables: frozenset[str],
        assignment: dict[str, Formula],
    ) -> bool:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class Atomic(Statement):
    """A propositional atom or a predicate applied to terms."""

    predicate: str
    args: tuple[Formula, ...] = ()

    def __str__(self) -> str:
        if not self.args:
            return self.predicate
        return f"{self.predicate}({', '.join(str(a) for a in self.args)})"

    def is_literal(self) -> bool:
        return True

    def _constants(self, bound: frozenset[str]) -> Iterator[Formula]:
        for arg in self.args:
            yield from arg.constants(bound)

    def _match(self, other, variables, assignment) -> bool:
        if not isinstance(other, Atomic):
            return False
        if self.predicate != other.predicate or len(self.args) != len(other.args):
            return False
        return all(
            _match_term(p, t, variables, assignment)
            for p, t in zip(self.args, other.args)
        )


@dataclass(frozen=True, slots=True)
class Not(Statement):
    operand: Statement

    def __str__(self) -> str:
        return f"¬{self.operand}"

    def is_literal(self) -> bool:
        return isinstance(self.operand, Atomic)

    def decompose(self) -> list[list[Statement]]:
        op = self.operand
        if isinstance(op, Not):
            return [[op.operand]]
        if isinstance(op, And):
            return [[Not(op.left)], [Not(op.right)]]
        if isinstance(op, Or):
            return [[Not(op.left), Not(op.right)]]
        if isinstance(op, Conditional):
            return [[op.left, Not(op.right)]]
        if isinstance(op, Biconditional):
            return [[op.left, Not(op.right)], [Not(op.left), op.right]]
        if isinstance(op, Existence):
            return [[Universal(op.variables, Not(op.body))]]
        if isinstance(op, Universal):
            return [[Existence(op.variables, Not(op.body))]]
        return []

    def _constants(self, bound: frozenset[str]) -> Iterator[Formula]:
        yield from self.operand._constants(bound)

    def _match(self, other, variables, assignment) -> bool:
        return isinstance(other, Not) and self.operand._match(
            other.operand, variables, assignment
        )


@dataclass(frozen=True, slots=True)
class _Binary(Statement):
    left: Statement
    right: Statement

    symbol = ""

    def __str__(self) -> str:
        return f"({self.left} {self.symbol} {self.right})"

    def _constants(self, bound: frozenset[str]) -> Iterator[Formula]:
        yield from self.left._constants(bound)
        yield from self.right._constants(bound)

    def _match(self, other, variables, assignment) -> bool:
        return (
            type(other) is type(self)
            and self.left._match(other.left, variables, assignment)
            and self.right._match(other.right, variables, assignment)
        )


@dataclass(frozen=True, slots=True)
class And(_Binary):
    symbol = "∧"

    def decompose(self) -> list[list[Statement]]:
        return [[self.left, self.right]]


@dataclass(frozen=True, slots=True)
class Or(_Binary):
    symbol = "∨"

    def decompose(self) -> list[list[Statement]]:
        return [[self.left], [self.right]]


@dataclass(frozen=True, slots=True)
class Conditional(_Binary):
    symbol = "→"

    def decompose(self) -> list[list[Statement]]:
        return [[Not(self.left)], [self.right]]


@dataclass(frozen=True, slots=True)
class Biconditional(_Binary):
    symbol = "↔"

    def decompose(self) -> list[list[Statement]]:
        return [[self.left, self.right], [Not(self.left), Not(self.right)]]


@dataclass(frozen=True, slots=True)
class Symbolized:
    """A quantifier body whose bound variables act as placeholders.

    Used to recognise instantiations: ``∀x P(x)`` symbolized matches ``P(a)``
    with the assignment ``{"x": a}``.
    """

    variables: tuple[str, ...]
    body: Statement

    def get_equals_map(self, other: Statement) -> dict[str, Formula] | None:
        """Return the placeholder assignment that turns the body into *other*.

        Returns None when *other* is not an instantiation of the body.
        """
        assignment: dict[str, Formula] = {}
        if self.body._match(other, frozenset(self.variables), assignment):
            return assignment
        return None

    def equals(self, other: Statement) -> bool:
        return self.get_equals_map(other) is not None


@dataclass(frozen=True, slots=True)
class Quantifier(Statement):
    """Base class for ``Existence`` and ``Universal``.

    Attributes:
        variables: Names of the bound variables, in binding order.
        body: The quantified statement.
    """

    variables: tuple[str, ...]
    body: Statement

    symbol = ""

    def __str__(self) -> str:
        return f"{self.symbol}{','.join(self.variables)} {self.body}"

    def decompose(self) -> list[list[Statement]]:
        # Completeness of quantifier decomposition is judged by instantiation,
        # not by branch matching; this only marks the obligation as non-empty.
        return [[self.body]]

    def symbolized(self) -> Symbolized:
        return Symbolized(self.variables, self.body)

    def _constants(self, bound: frozenset[str]) -> Iterator[Formula]:
        yield from self.body._constants(bound | frozenset(self.variables))

    def _match(self, other, variables, assignment) -> bool:
        return (
            type(other) is type(self)
            and self.variables == other.variables
            and self.body._match(
                other.body, variables - frozenset(self.variables), assignment
            )
        )


@dataclass(frozen=True, slots=True)
class Existence(Quantifier):
    symbol = "∃"


@dataclass(frozen=True, slots=True)
class Universal(Quantifier):
    symbol = "∀"
