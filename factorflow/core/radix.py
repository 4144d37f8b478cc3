"""Mixed-radix numbers for addressing flat probability tables.

A :class:`MixedRadix` maps a tuple of bounded integers (one *numeral* per
slot, slot ``i`` ranging over ``[0, radices[i])``) to a single offset and
back.  Slot 0 is the least significant position, so when enumerating with
:meth:`MixedRadix.increment` it varies fastest.
"""

from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

import numpy as np


class MixedRadix:
    """Encoder/decoder for a fixed sequence of radices.

    Parameters
    ----------
    radices : sequence of int
        The radix of each slot, least significant first.  Each radix must
        be at least 1.  An empty sequence describes a single cell.
    """

    def __init__(self, radices: Sequence[int]) -> None:
        radices = tuple(int(r) for r in radices)
        for r in radices:
            if r < 1:
                raise ValueError(f"Invalid radix {r}, must be >= 1")
        self._radices: Tuple[int, ...] = radices
        # place value of each slot: product of all less significant radices
        weights = np.cumprod((1,) + radices[:-1]) if radices else ()
        self._weights: Tuple[int, ...] = tuple(int(w) for w in weights)
        self._size = int(np.prod(radices, dtype=np.int64)) if radices else 1

    @property
    def radices(self) -> Tuple[int, ...]:
        return self._radices

    @property
    def size(self) -> int:
        """Number of distinct values, i.e. the product of the radices."""
        return self._size

    def __len__(self) -> int:
        return len(self._radices)

    # ----- codec ---------------------------------------------------------

    def _check(self, numerals: Sequence[int]) -> None:
        if len(numerals) != len(self._radices):
            raise ValueError(
                f"Expected {len(self._radices)} numerals, got {len(numerals)}"
            )
        for slot, (n, r) in enumerate(zip(numerals, self._radices)):
            if not 0 <= n < r:
                raise ValueError(
                    f"Numeral {n} out of range for slot {slot} (radix {r})"
                )

    def encode(self, numerals: Sequence[int]) -> int:
        """Return the offset of *numerals* (one numeral per slot)."""
        self._check(numerals)
        return sum(n * w for n, w in zip(numerals, self._weights))

    def decode(self, offset: int) -> List[int]:
        """Inverse of :meth:`encode`."""
        if not 0 <= offset < self._size:
            raise ValueError(
                f"Offset {offset} out of range [0, {self._size})"
            )
        numerals = []
        for r in self._radices:
            offset, n = divmod(offset, r)
            numerals.append(n)
        return numerals

    # ----- enumeration ---------------------------------------------------

    def increment(self, numerals: Sequence[int]) -> Tuple[List[int], bool]:
        """Return the numerals following *numerals* in canonical order.

        The second element is False when *numerals* was already the last
        value, in which case the numerals are returned unchanged.
        """
        self._check(numerals)
        current = list(numerals)
        for slot, r in enumerate(self._radices):
            if current[slot] + 1 < r:
                current[slot] += 1
                return current, True
            current[slot] = 0
        return list(numerals), False

    def iter_numerals(self) -> Iterator[List[int]]:
        """Yield every numeral tuple, offset 0 first."""
        numerals = [0] * len(self._radices)
        has_next = True
        while has_next:
            yield list(numerals)
            numerals, has_next = self.increment(numerals)

    def __repr__(self) -> str:
        return f"MixedRadix(radices={list(self._radices)})"
