"""Composable filter chain for SD records.

Filters are callables that accept an SDFRecord and return bool.
Chains short-circuit on the first failing predicate (AND semantics).
"""
from __future__ import annotations

from typing import Callable, Iterable, Iterator

from ..reader.sdf_reader import SDFRecord

Predicate = Callable[[SDFRecord], bool]


class FilterChain:
    """Apply multiple predicates in sequence (logical AND).

    Usage::

        chain = FilterChain()
        chain.add(MaxAtomCount(50))
        chain.add(ContainsNoPseudoAtoms())

        kept = list(chain.apply(reader))
    """

    def __init__(self) -> None:
        self._predicates: list[Predicate] = []

    def add(self, predicate: Predicate) -> "FilterChain":
        """Append a predicate and return self for chaining."""
        self._predicates.append(predicate)
        return self

    def matches(self, record: SDFRecord) -> bool:
        """Return True if all predicates accept the record."""
        return all(p(record) for p in self._predicates)

    def apply(self, records: Iterable[SDFRecord]) -> Iterator[SDFRecord]:
        """Yield records that pass every predicate."""
        for record in records:
            if self.matches(record):
                yield record

    # Allow combining two chains with &
    def __and__(self, other: "FilterChain") -> "FilterChain":
        combined = FilterChain()
        combined._predicates = self._predicates + other._predicates
        return combined

    def __len__(self) -> int:
        return len(self._predicates)

    def __repr__(self) -> str:
        return f"FilterChain({len(self._predicates)} predicates)"


class AnyFilter:
    """Logical OR: accept a record if at least one predicate matches."""

    def __init__(self, *predicates: Predicate) -> None:
        self._predicates = list(predicates)

    def matches(self, record: SDFRecord) -> bool:
        return any(p(record) for p in self._predicates)

    def __call__(self, record: SDFRecord) -> bool:
        return self.matches(record)

    def apply(self, records: Iterable[SDFRecord]) -> Iterator[SDFRecord]:
        for record in records:
            if self.matches(record):
                yield record
