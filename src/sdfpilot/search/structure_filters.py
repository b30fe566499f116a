"""Threshold predicates on decoded structures.

Every predicate rejects records whose structure failed to decode.
"""
from __future__ import annotations

from ..decoders.base import Structure
from ..reader.sdf_reader import SDFRecord


class StructureFilter:
    """Base class: apply ``test`` to the record's structure, if any."""

    def __call__(self, record: SDFRecord) -> bool:
        if record.structure is None:
            return False
        return self.test(record.structure)

    def test(self, structure: Structure) -> bool:
        raise NotImplementedError


class _Threshold(StructureFilter):
    def __init__(self, limit: int) -> None:
        if limit < 0:
            raise ValueError(f"{type(self).__name__} limit must be >= 0, got {limit}")
        self.limit = limit

    def value(self, structure: Structure) -> int:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.limit})"


class _Min(_Threshold):
    def test(self, structure: Structure) -> bool:
        return self.value(structure) >= self.limit


class _Max(_Threshold):
    def test(self, structure: Structure) -> bool:
        return self.value(structure) <= self.limit


class MinAtomCount(_Min):
    def value(self, structure: Structure) -> int:
        return structure.atom_count


class MaxAtomCount(_Max):
    def value(self, structure: Structure) -> int:
        return structure.atom_count


class MinHeavyAtomCount(_Min):
    def value(self, structure: Structure) -> int:
        return structure.heavy_atom_count


class MaxHeavyAtomCount(_Max):
    def value(self, structure: Structure) -> int:
        return structure.heavy_atom_count


class MinBondCount(_Min):
    def value(self, structure: Structure) -> int:
        return structure.bond_count


class MaxBondCount(_Max):
    def value(self, structure: Structure) -> int:
        return structure.bond_count


class MinBondsOfOrder(_Min):
    """At least ``limit`` bonds of the given molfile bond type."""

    def __init__(self, order: int, limit: int) -> None:
        super().__init__(limit)
        self.order = order

    def value(self, structure: Structure) -> int:
        return structure.bond_order_count(self.order)


class MaxBondsOfOrder(_Max):
    """At most ``limit`` bonds of the given molfile bond type."""

    def __init__(self, order: int, limit: int) -> None:
        super().__init__(limit)
        self.order = order

    def value(self, structure: Structure) -> int:
        return structure.bond_order_count(self.order)


class ContainsPseudoAtoms(StructureFilter):
    def test(self, structure: Structure) -> bool:
        return structure.has_pseudo_atoms


class ContainsNoPseudoAtoms(StructureFilter):
    def test(self, structure: Structure) -> bool:
        return not structure.has_pseudo_atoms


class HasProperty(StructureFilter):
    """The record carries a data item with this name (optionally non-empty)."""

    def __init__(self, name: str, non_empty: bool = False) -> None:
        self.name = name
        self.non_empty = non_empty

    def test(self, structure: Structure) -> bool:
        if self.name not in structure.properties:
            return False
        return bool(structure.properties[self.name].strip()) or not self.non_empty
