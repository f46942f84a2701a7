# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

"""
Rank-1 constraint systems over the BLS12-381 scalar field.

A constraint is a triple of linear combinations (a, b, c) that holds when
<a, z> * <b, z> == <c, z> for the full assignment z. Public inputs and
private (aux) variables live in separate index spaces; input 0 is the
constant one.
"""

from typing import Iterable, NamedTuple, Union

from py_ecc.optimized_bls12_381 import curve_order


class Variable(NamedTuple):
    index: int
    is_input: bool


ONE = Variable(0, True)


class LinearCombination:
    """A sparse sum of coefficient * variable terms."""

    __slots__ = ("terms",)

    def __init__(self, terms: dict[Variable, int] | None = None):
        self.terms: dict[Variable, int] = {}
        for var, coeff in (terms or {}).items():
            self._accumulate(var, coeff)

    def _accumulate(self, var: Variable, coeff: int) -> None:
        coeff = (self.terms.get(var, 0) + coeff) % curve_order
        if coeff:
            self.terms[var] = coeff
        else:
            self.terms.pop(var, None)

    @classmethod
    def zero(cls) -> "LinearCombination":
        return cls()

    @classmethod
    def of(cls, value: "Term") -> "LinearCombination":
        if isinstance(value, LinearCombination):
            return value
        if isinstance(value, Variable):
            return cls({value: 1})
        return cls({ONE: value})

    @classmethod
    def weighted_sum(
        cls, items: Iterable[tuple["Term", int]]
    ) -> "LinearCombination":
        """Build sum(coeff * term) in one pass, without intermediate copies."""
        out = cls()
        for term, coeff in items:
            for var, c in cls.of(term).terms.items():
                out._accumulate(var, c * coeff)
        return out

    def __add__(self, other: "Term") -> "LinearCombination":
        out = LinearCombination(self.terms)
        for var, coeff in LinearCombination.of(other).terms.items():
            out._accumulate(var, coeff)
        return out

    __radd__ = __add__

    def __neg__(self) -> "LinearCombination":
        return self * -1

    def __sub__(self, other: "Term") -> "LinearCombination":
        return self + (-LinearCombination.of(other))

    def __rsub__(self, other: "Term") -> "LinearCombination":
        return LinearCombination.of(other) - self

    def __mul__(self, scalar: int) -> "LinearCombination":
        if not isinstance(scalar, int):
            return NotImplemented
        return LinearCombination(
            {var: coeff * scalar for var, coeff in self.terms.items()}
        )

    __rmul__ = __mul__

    def __repr__(self) -> str:
        return f"LinearCombination({self.terms!r})"

    def evaluate(self, inputs: list[int], aux: list[int]) -> int:
        acc = 0
        for var, coeff in self.terms.items():
            value = inputs[var.index] if var.is_input else aux[var.index]
            acc += coeff * value
        return acc % curve_order


Term = Union[LinearCombination, Variable, int]


class ConstraintSystem:
    """
    Collects variables and constraints while a circuit is synthesized.

    When the circuit is synthesized without a witness (parameter generation)
    every value is None; only the shape of the system is recorded.
    """

    def __init__(self) -> None:
        self.inputs: list[int | None] = [1]
        self.aux: list[int | None] = []
        self.constraints: list[
            tuple[LinearCombination, LinearCombination, LinearCombination]
        ] = []

    @property
    def num_inputs(self) -> int:
        return len(self.inputs)

    @property
    def num_aux(self) -> int:
        return len(self.aux)

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)

    def alloc(self, value: int | None = None) -> Variable:
        """Allocate a private variable."""
        self.aux.append(None if value is None else value % curve_order)
        return Variable(len(self.aux) - 1, False)

    def alloc_input(self, value: int | None = None) -> Variable:
        """Allocate a public input variable."""
        self.inputs.append(None if value is None else value % curve_order)
        return Variable(len(self.inputs) - 1, True)

    def enforce(self, a: Term, b: Term, c: Term) -> None:
        """Record the constraint a * b = c."""
        self.constraints.append(
            (
                LinearCombination.of(a),
                LinearCombination.of(b),
                LinearCombination.of(c),
            )
        )

    def value(self, var: Variable) -> int | None:
        return self.inputs[var.index] if var.is_input else self.aux[var.index]

    def has_assignment(self) -> bool:
        return None not in self.inputs and None not in self.aux

    def assignment(self) -> tuple[list[int], list[int]]:
        """
        Return the (inputs, aux) assignment.

        Raises:
            ValueError: If the system was synthesized without values.
        """
        if not self.has_assignment():
            raise ValueError("constraint system has no complete assignment")
        return list(self.inputs), list(self.aux)  # type: ignore[arg-type]

    def which_is_unsatisfied(self) -> int | None:
        """Index of the first violated constraint, or None if all hold."""
        inputs, aux = self.assignment()
        for i, (a, b, c) in enumerate(self.constraints):
            lhs = a.evaluate(inputs, aux) * b.evaluate(inputs, aux) % curve_order
            if lhs != c.evaluate(inputs, aux):
                return i
        return None

    def is_satisfied(self) -> bool:
        return self.which_is_unsatisfied() is None
