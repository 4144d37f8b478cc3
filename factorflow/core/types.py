"""Core types for factorflow Bayesian networks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, Tuple


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------

def _key(value: Hashable) -> Tuple[type, Hashable]:
    # 1, 1.0 and True hash alike; a domain keeps them apart
    return type(value), value


class FiniteDomain:
    """An ordered, enumerable set of values a random variable can take.

    Duplicate values are collapsed, keeping the first occurrence, so the
    position of a value in :attr:`possible_values` is its domain index.

    Parameters
    ----------
    values : iterable of hashable
        The possible values, in the order used for enumeration.
    """

    def __init__(self, values: Iterable[Hashable]) -> None:
        unique: Dict[Tuple[type, Hashable], Hashable] = {}
        for v in values:
            unique.setdefault(_key(v), v)
        ordered = tuple(unique.values())
        if not ordered:
            raise ValueError("A finite domain needs at least one value")
        self._values: Tuple[Hashable, ...] = ordered
        self._index: Dict[Tuple[type, Hashable], int] = {
            _key(v): i for i, v in enumerate(ordered)
        }

    @property
    def possible_values(self) -> Tuple[Hashable, ...]:
        return self._values

    @property
    def size(self) -> int:
        return len(self._values)

    def index_of(self, value: Hashable) -> int:
        """Return the domain index of *value*.

        Raises
        ------
        ValueError
            If *value* is not part of this domain.
        """
        try:
            return self._index[_key(value)]
        except (KeyError, TypeError):
            raise ValueError(
                f"{value!r} is not a possible value. "
                f"Valid values: {list(self._values)}"
            ) from None

    def value_at(self, index: int) -> Hashable:
        return self._values[index]

    def __contains__(self, value: object) -> bool:
        try:
            return _key(value) in self._index
        except TypeError:
            return False

    def __iter__(self):
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FiniteDomain):
            return NotImplemented
        return self._index == other._index

    def __hash__(self) -> int:
        return hash(tuple(self._index))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._values)})"


class BooleanDomain(FiniteDomain):
    """The domain ``(True, False)``, in that order."""

    def __init__(self) -> None:
        super().__init__((True, False))

    def __repr__(self) -> str:
        return "BooleanDomain()"


# ---------------------------------------------------------------------------
# Random variables and assignments
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class RandomVariable:
    """A named random variable over a finite domain.

    Two variables are equal iff their names match, so a variable can be
    used as a mapping key wherever it is referenced.
    """

    name: str
    domain: FiniteDomain = field(default_factory=BooleanDomain)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("A random variable needs a non-empty name")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RandomVariable):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"RandomVariable({self.name!r})"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class AssignmentProposition:
    """The proposition ``variable = value``."""

    variable: RandomVariable
    value: Any

    def __post_init__(self) -> None:
        if self.value not in self.variable.domain:
            raise ValueError(
                f"{self.value!r} is not a valid value of '{self.variable.name}'. "
                f"Valid values: {list(self.variable.domain.possible_values)}"
            )

    def __str__(self) -> str:
        return f"{self.variable.name} = {self.value}"
