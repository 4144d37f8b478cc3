"""Dense probability tables over finite random variables.

Provides :class:`ProbabilityTable`, a factor stored as a flat ``float64``
array and addressed through a :class:`~factorflow.core.radix.MixedRadix`.
The same class doubles as the categorical distribution returned by
queries.

Canonical order
---------------
The i-th of *n* variables occupies radix slot ``n - 1 - i``: the first
variable varies slowest and the last fastest.  For two Boolean variables
``X, Y`` the cells are therefore laid out as::

    X     Y
    True  True
    True  False
    False True
    False False

which is also the C (row-major) order of :meth:`ProbabilityTable.as_array`.
Every table over the same variable list shares this layout, so binary
operations between independently built tables line up.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from factorflow.core.radix import MixedRadix
from factorflow.core.types import (
    AssignmentProposition,
    FiniteDomain,
    RandomVariable,
)


class ProbabilityTable:
    """A factor mapping joint assignments of finite variables to reals.

    Parameters
    ----------
    variables : sequence of RandomVariable
        The variables of the table.  Their order fixes the radix slots.
    values : array_like, optional
        Either a flat sequence of ``prod(domain sizes)`` values in
        canonical order, or an array whose shape equals the domain sizes.
        Defaults to all zeros.

    Raises
    ------
    TypeError
        If a variable is not backed by a :class:`FiniteDomain`.
    ValueError
        If variables repeat, the number of values is wrong, or a value is
        negative.
    """

    def __init__(
        self,
        variables: Sequence[RandomVariable],
        values: Optional[Any] = None,
    ) -> None:
        variables = tuple(variables)
        for var in variables:
            if not isinstance(var.domain, FiniteDomain):
                raise TypeError(
                    f"Variable '{var.name}' does not have a finite domain"
                )
        if len(set(variables)) != len(variables):
            raise ValueError(
                f"Duplicate variables in {[v.name for v in variables]}"
            )

        self._variables: Tuple[RandomVariable, ...] = variables
        self._positions: Dict[RandomVariable, int] = {
            v: i for i, v in enumerate(variables)
        }
        self._shape: Tuple[int, ...] = tuple(v.domain.size for v in variables)
        self._codec = MixedRadix(tuple(reversed(self._shape)))

        if values is None:
            arr = np.zeros(self._codec.size, dtype=np.float64)
        else:
            arr = np.array(values, dtype=np.float64)
            if arr.size != self._codec.size or (
                arr.ndim > 1 and arr.shape != self._shape
            ):
                raise ValueError(
                    f"ProbabilityTable values of shape {arr.shape} do not match "
                    f"domain sizes {self._shape} "
                    f"({self._codec.size} values expected)"
                )
            arr = arr.reshape(-1)
            if not np.all(np.isfinite(arr)) or np.any(arr < 0):
                raise ValueError(
                    "ProbabilityTable values must be finite and non-negative"
                )
        self._values: np.ndarray = arr

        self._sum: Optional[float] = None
        self._text: Optional[str] = None

    # ----- properties -----------------------------------------------------

    @property
    def variables(self) -> Tuple[RandomVariable, ...]:
        return self._variables

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the flat value array."""
        view = self._values.view()
        view.flags.writeable = False
        return view

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._shape

    def contains(self, variable: RandomVariable) -> bool:
        return variable in self._positions

    __contains__ = contains

    def __len__(self) -> int:
        return self._values.size

    def as_array(self) -> np.ndarray:
        """Return a copy of the values with one axis per variable."""
        return self._values.reshape(self._shape).copy()

    def copy(self) -> "ProbabilityTable":
        return ProbabilityTable(self._variables, self._values)

    # ----- lookup ---------------------------------------------------------

    def get_value(self, *assignments: AssignmentProposition) -> float:
        """Return the value for a full assignment of the table's variables.

        The assignments may be given in any order but must cover exactly
        the variables of this table.

        Raises
        ------
        ValueError
            If the number of assignments differs from the number of
            variables, or an assignment names a foreign or repeated
            variable.
        """
        if len(assignments) != len(self._variables):
            raise ValueError(
                f"Got {len(assignments)} assignments for a table over "
                f"{len(self._variables)} variables"
            )
        indices: List[Optional[int]] = [None] * len(self._variables)
        for ap in assignments:
            pos = self._positions.get(ap.variable)
            if pos is None:
                raise ValueError(
                    f"Variable '{ap.variable.name}' is not part of this table"
                )
            if indices[pos] is not None:
                raise ValueError(
                    f"Variable '{ap.variable.name}' is assigned more than once"
                )
            indices[pos] = self._variables[pos].domain.index_of(ap.value)
        return float(self._values[self._encode(indices)])

    def get_index(self, *values: Any) -> int:
        """Return the flat offset of domain *values* given in variable order."""
        if len(values) != len(self._variables):
            raise ValueError(
                f"Got {len(values)} values for a table over "
                f"{len(self._variables)} variables"
            )
        return self._encode(
            [v.domain.index_of(x) for v, x in zip(self._variables, values)]
        )

    def get_value_at(self, *values: Any) -> float:
        """Return the value for domain *values* given in variable order."""
        return float(self._values[self.get_index(*values)])

    # ----- mutation -------------------------------------------------------

    def set_value(self, offset: int, value: float) -> None:
        if not 0 <= offset < self._values.size:
            raise IndexError(
                f"Offset {offset} out of range for a table of "
                f"{self._values.size} values"
            )
        if not np.isfinite(value) or value < 0:
            raise ValueError(
                f"ProbabilityTable values must be finite and non-negative, "
                f"got {value!r}"
            )
        self._values[offset] = value
        self._invalidate()

    def sum(self) -> float:
        """Total mass of the table (cached until the next mutation)."""
        if self._sum is None:
            self._sum = float(self._values.sum())
        return self._sum

    def normalize(self) -> "ProbabilityTable":
        """Scale the values in place so that they sum to 1.

        Tables summing to 0 or already to 1 are left untouched.  Returns
        ``self``.
        """
        s = self.sum()
        if s != 0 and s != 1.0:
            self._values /= s
            self._invalidate()
        return self

    # ----- algebra --------------------------------------------------------

    def sum_out(self, *variables: RandomVariable) -> "ProbabilityTable":
        """Marginalize *variables* out of this table.

        Returns a new table over the remaining variables (original order).
        Summing out every variable yields a one-cell table holding
        :meth:`sum`.
        """
        for var in variables:
            if var not in self._positions:
                raise ValueError(f"Variable '{var.name}' not in table")
        removed = set(variables)
        remaining = [v for v in self._variables if v not in removed]
        summed = ProbabilityTable(remaining)

        if not remaining:
            summed._values[0] = self.sum()
        else:
            keep = [self._positions[v] for v in remaining]
            for offset, indices in self._iter_indices():
                target = summed._encode([indices[p] for p in keep])
                summed._values[target] += self._values[offset]
        return summed

    def pointwise_product(
        self,
        other: "ProbabilityTable",
        order: Optional[Sequence[RandomVariable]] = None,
    ) -> "ProbabilityTable":
        """Multiply two tables cell by cell.

        The result ranges over the union of both scopes; shared variables
        are aligned and disjoint scopes give an outer product.

        Parameters
        ----------
        other : ProbabilityTable
            The multiplier.
        order : sequence of RandomVariable, optional
            Variable order of the product.  Defaults to this table's
            variables followed by the new variables of *other*.

        Raises
        ------
        ValueError
            If *order* is not exactly the union of both scopes.
        """
        union = self._variables + tuple(
            v for v in other._variables if v not in self._positions
        )
        if order is None:
            order = union
        else:
            order = tuple(order)
            if len(order) != len(union) or set(order) != set(union):
                raise ValueError(
                    f"Product order {[v.name for v in order]} is inconsistent "
                    f"with the variables {[v.name for v in union]}"
                )

        product = ProbabilityTable(order)
        self_pos = [product._positions[v] for v in self._variables]
        other_pos = [product._positions[v] for v in other._variables]
        for offset, indices in product._iter_indices():
            a = self._values[self._encode([indices[p] for p in self_pos])]
            b = other._values[other._encode([indices[p] for p in other_pos])]
            product._values[offset] = a * b
        return product

    def divide_by(self, divisor: "ProbabilityTable") -> "ProbabilityTable":
        """Divide this table by a table over a subset of its variables.

        Each cell is divided by the divisor cell sharing its
        sub-assignment.  Dividing by a zero cell yields 0, so in
        particular ``0 / 0 == 0``.

        Raises
        ------
        ValueError
            If the divisor's variables are not a subset of this table's.
        """
        if not set(divisor._variables) <= set(self._variables):
            raise ValueError("Divisor must be a subset of the dividend")

        quotient = ProbabilityTable(self._variables)
        if not divisor._variables:
            d = divisor._values[0]
            if d != 0:
                quotient._values[:] = self._values / d
            return quotient

        divisor_pos = [self._positions[v] for v in divisor._variables]
        for offset, indices in self._iter_indices():
            d = divisor._values[divisor._encode([indices[p] for p in divisor_pos])]
            if d != 0:
                quotient._values[offset] = self._values[offset] / d
        return quotient

    def reduce(self, *assignments: AssignmentProposition) -> "ProbabilityTable":
        """Condition on *assignments*, dropping the assigned variables.

        Returns a new table over the unassigned variables holding the
        slice of this table consistent with the assignments.
        """
        fixed: Dict[int, int] = {}
        for ap in assignments:
            pos = self._positions.get(ap.variable)
            if pos is None:
                raise ValueError(f"Variable '{ap.variable.name}' not in table")
            idx = self._variables[pos].domain.index_of(ap.value)
            if fixed.get(pos, idx) != idx:
                raise ValueError(
                    f"Conflicting assignments for '{ap.variable.name}'"
                )
            fixed[pos] = idx

        remaining = [v for i, v in enumerate(self._variables) if i not in fixed]
        reduced = ProbabilityTable(remaining)
        keep = [self._positions[v] for v in remaining]
        full: List[int] = [0] * len(self._variables)
        for pos, idx in fixed.items():
            full[pos] = idx
        for offset, indices in reduced._iter_indices():
            for p, idx in zip(keep, indices):
                full[p] = idx
            reduced._values[offset] = self._values[self._encode(full)]
        return reduced

    # ----- iteration ------------------------------------------------------

    def iterate(self) -> Iterator[Tuple[Dict[RandomVariable, Any], float]]:
        """Yield ``(assignment, value)`` for every cell in canonical order.

        Each assignment is a fresh ``{variable: value}`` dict in variable
        order.  Every call starts a new pass over the table.
        """
        for offset, indices in self._iter_indices():
            world = {
                v: v.domain.value_at(i)
                for v, i in zip(self._variables, indices)
            }
            yield world, float(self._values[offset])

    def __iter__(self) -> Iterator[Tuple[Dict[RandomVariable, Any], float]]:
        return self.iterate()

    # ----- operators ------------------------------------------------------

    def __mul__(self, other: object) -> "ProbabilityTable":
        if not isinstance(other, ProbabilityTable):
            return NotImplemented
        return self.pointwise_product(other)

    def __truediv__(self, other: object) -> "ProbabilityTable":
        if not isinstance(other, ProbabilityTable):
            return NotImplemented
        return self.divide_by(other)

    # ----- helpers --------------------------------------------------------

    def _encode(self, indices: Sequence[int]) -> int:
        """Offset of per-variable domain *indices* (variable order)."""
        return self._codec.encode(list(reversed(indices)))

    def _iter_indices(self) -> Iterator[Tuple[int, List[int]]]:
        """Yield ``(offset, per-variable indices)`` in canonical order."""
        for offset, numerals in enumerate(self._codec.iter_numerals()):
            numerals.reverse()
            yield offset, numerals

    def _invalidate(self) -> None:
        self._sum = None
        self._text = None

    def __str__(self) -> str:
        if self._text is None:
            self._text = "<" + ", ".join(str(float(v)) for v in self._values) + ">"
        return self._text

    def __repr__(self) -> str:
        return (
            f"ProbabilityTable(variables={[v.name for v in self._variables]}, "
            f"shape={self._shape})"
        )
