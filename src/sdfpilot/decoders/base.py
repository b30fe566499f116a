"""Decoder protocol and the value types decoders produce."""
from __future__ import annotations

import enum
from collections import Counter as _Counter
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

# Atom symbols that stand for generic or unknown atoms rather than elements
PSEUDO_ATOM_SYMBOLS = frozenset({"A", "Q", "L", "LP", "R", "R#", "*", "X", "M", "Pol", "D?"})

HYDROGEN_SYMBOLS = frozenset({"H", "D", "T"})


class FormatVariant(enum.Enum):
    """Molfile dialect of a single record."""

    LEGACY = "legacy"
    V2000 = "V2000"
    V3000 = "V3000"

    def __str__(self) -> str:
        return self.value


@dataclass
class Atom:
    symbol: str
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    charge: int = 0
    mass: int | None = None

    @property
    def is_pseudo(self) -> bool:
        return self.symbol in PSEUDO_ATOM_SYMBOLS

    @property
    def is_heavy(self) -> bool:
        return self.symbol not in HYDROGEN_SYMBOLS and not self.is_pseudo


@dataclass
class Bond:
    """A bond between two atoms, given as 0-based atom indices."""

    begin: int
    end: int
    order: int = 1
    stereo: int = 0


@dataclass
class Structure:
    """Connection table of one record plus its SD data items.

    Attributes:
        title:       First header line of the molfile.
        program:     Second header line (program / timestamp).
        comment:     Third header line.
        atoms:       Atoms in block order.
        bonds:       Bonds referencing ``atoms`` by 0-based index.
        variant:     Dialect the block was decoded with.
        properties:  Data items attached after decoding, in file order.
    """

    title: str = ""
    program: str = ""
    comment: str = ""
    atoms: list[Atom] = field(default_factory=list)
    bonds: list[Bond] = field(default_factory=list)
    variant: FormatVariant = FormatVariant.LEGACY
    properties: dict[str, str] = field(default_factory=dict)

    @property
    def atom_count(self) -> int:
        return len(self.atoms)

    @property
    def bond_count(self) -> int:
        return len(self.bonds)

    @property
    def heavy_atom_count(self) -> int:
        return sum(1 for a in self.atoms if a.is_heavy)

    @property
    def has_pseudo_atoms(self) -> bool:
        return any(a.is_pseudo for a in self.atoms)

    def bond_order_count(self, order: int) -> int:
        return sum(1 for b in self.bonds if b.order == order)

    def element_counts(self) -> dict[str, int]:
        return dict(_Counter(a.symbol for a in self.atoms))

    def set_property(self, name: str, value: str) -> None:
        self.properties[name] = value


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding one structural block: a structure or an error message."""

    structure: Structure | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.structure is not None

    @classmethod
    def success(cls, structure: Structure) -> "DecodeResult":
        return cls(structure=structure)

    @classmethod
    def failure(cls, error: str) -> "DecodeResult":
        return cls(error=error or "unknown decode error")


@runtime_checkable
class MolfileDecoder(Protocol):
    """Protocol for structural block decoders, one per FormatVariant."""

    @property
    def variant(self) -> FormatVariant:
        """The dialect this decoder understands."""
        ...

    def decode(self, text: str) -> DecodeResult:
        """Decode a block ending in ``M  END``. Never raises for bad input."""
        ...
