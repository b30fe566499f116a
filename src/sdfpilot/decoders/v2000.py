"""Fixed-width connection table decoders (V2000 and pre-V2000 legacy molfiles).

Counts line:  aaabbblllfffcccsssxxxrrrpppiiimmmvvvvvv
Atom line:    xxxxx.xxxxyyyyy.yyyyzzzzz.zzzz aaaddcccssshhhbbbvvvHHHrrriiimmmnnneee
Bond line:    111222tttsssxxxrrrccc
"""
from __future__ import annotations

import logging

from ..errors import MolfileError
from .base import Atom, Bond, DecodeResult, FormatVariant, Structure

logger = logging.getLogger(__name__)

HEADER_LINES = 3
END_MARKER = "M  END"

# Atom block charge codes; 4 is a doublet radical and carries no charge
_CHARGE_CODES = {0: 0, 1: 3, 2: 2, 3: 1, 4: 0, 5: -1, 6: -2, 7: -3}


def _int_field(line: str, start: int, end: int, what: str, lineno: int, default: int | None = None) -> int:
    raw = line[start:end].strip()
    if not raw:
        if default is not None:
            return default
        raise MolfileError(f"missing {what}", lineno)
    try:
        return int(raw)
    except ValueError:
        raise MolfileError(f"invalid {what} {raw!r}", lineno) from None


def _float_field(line: str, start: int, end: int, what: str, lineno: int) -> float:
    raw = line[start:end].strip()
    try:
        return float(raw)
    except ValueError:
        raise MolfileError(f"invalid {what} {raw!r}", lineno) from None


def read_header(lines: list[str]) -> tuple[str, str, str]:
    """Return the three header lines (title, program, comment)."""
    if len(lines) < HEADER_LINES + 1:
        raise MolfileError("block too short for a molfile header and counts line")
    return lines[0].strip(), lines[1].rstrip(), lines[2].rstrip()


def read_counts(line: str, lineno: int) -> tuple[int, int]:
    """Parse atom and bond counts from a fixed-width counts line."""
    atoms = _int_field(line, 0, 3, "atom count", lineno)
    bonds = _int_field(line, 3, 6, "bond count", lineno)
    if atoms < 0 or bonds < 0:
        raise MolfileError("negative atom or bond count", lineno)
    return atoms, bonds


class V2000Decoder:
    """Decode V2000 connection tables, including ``M  CHG`` and ``M  ISO`` lines."""

    parse_property_lines = True

    @property
    def variant(self) -> FormatVariant:
        return FormatVariant.V2000

    def decode(self, text: str) -> DecodeResult:
        try:
            return DecodeResult.success(self._decode(text))
        except MolfileError as exc:
            logger.debug("%s block rejected: %s", self.variant, exc)
            return DecodeResult.failure(str(exc))

    def _decode(self, text: str) -> Structure:
        lines = text.splitlines()
        title, program, comment = read_header(lines)
        n_atoms, n_bonds = read_counts(lines[3], 4)

        first_atom = HEADER_LINES + 1
        first_bond = first_atom + n_atoms
        props_start = first_bond + n_bonds
        if len(lines) < props_start:
            raise MolfileError(
                f"block declares {n_atoms} atoms and {n_bonds} bonds but has "
                f"only {len(lines) - first_atom} table lines"
            )

        atoms = [self._read_atom(lines[i], i + 1) for i in range(first_atom, first_bond)]
        bonds = [self._read_bond(lines[i], i + 1, n_atoms) for i in range(first_bond, props_start)]

        if self.parse_property_lines:
            self._apply_property_lines(lines[props_start:], props_start, atoms)

        return Structure(
            title=title,
            program=program,
            comment=comment,
            atoms=atoms,
            bonds=bonds,
            variant=self.variant,
        )

    def _read_atom(self, line: str, lineno: int) -> Atom:
        if line.startswith(END_MARKER) or len(line) < 32:
            raise MolfileError("truncated atom line", lineno)
        symbol = line[31:34].strip()
        if not symbol:
            raise MolfileError("atom line without symbol", lineno)
        code = _int_field(line, 36, 39, "charge code", lineno, default=0)
        if code not in _CHARGE_CODES:
            raise MolfileError(f"unknown charge code {code}", lineno)
        return Atom(
            symbol=symbol,
            x=_float_field(line, 0, 10, "x coordinate", lineno),
            y=_float_field(line, 10, 20, "y coordinate", lineno),
            z=_float_field(line, 20, 30, "z coordinate", lineno),
            charge=_CHARGE_CODES[code],
        )

    def _read_bond(self, line: str, lineno: int, n_atoms: int) -> Bond:
        if line.startswith(END_MARKER):
            raise MolfileError("truncated bond block", lineno)
        begin = _int_field(line, 0, 3, "first bond atom", lineno)
        end = _int_field(line, 3, 6, "second bond atom", lineno)
        for idx in (begin, end):
            if not 1 <= idx <= n_atoms:
                raise MolfileError(f"bond references atom {idx} of {n_atoms}", lineno)
        return Bond(
            begin=begin - 1,
            end=end - 1,
            order=_int_field(line, 6, 9, "bond type", lineno),
            stereo=_int_field(line, 9, 12, "bond stereo", lineno, default=0),
        )

    def _apply_property_lines(self, lines: list[str], offset: int, atoms: list[Atom]) -> None:
        charges_reset = False
        for i, line in enumerate(lines, start=offset + 1):
            if line.startswith(END_MARKER):
                return
            if line.startswith("M  CHG") or line.startswith("M  ISO"):
                pairs = self._atom_value_pairs(line, i, len(atoms))
                if line.startswith("M  CHG"):
                    # The first M  CHG line supersedes every atom block charge
                    if not charges_reset:
                        for atom in atoms:
                            atom.charge = 0
                        charges_reset = True
                    for idx, value in pairs:
                        atoms[idx].charge = value
                else:
                    for idx, value in pairs:
                        atoms[idx].mass = value

    @staticmethod
    def _atom_value_pairs(line: str, lineno: int, n_atoms: int) -> list[tuple[int, int]]:
        tokens = line[6:].split()
        try:
            count = int(tokens[0])
            values = [int(t) for t in tokens[1 : 1 + 2 * count]]
        except (IndexError, ValueError):
            raise MolfileError(f"malformed property line {line[:6]!r}", lineno) from None
        if len(values) != 2 * count:
            raise MolfileError(f"property line {line[:6]!r} lists fewer entries than declared", lineno)
        pairs: list[tuple[int, int]] = []
        for atom_no, value in zip(values[::2], values[1::2]):
            if not 1 <= atom_no <= n_atoms:
                raise MolfileError(f"property line references atom {atom_no} of {n_atoms}", lineno)
            pairs.append((atom_no - 1, value))
        return pairs


class LegacyDecoder(V2000Decoder):
    """Molfiles without a version tag: atom and bond blocks only."""

    parse_property_lines = False

    @property
    def variant(self) -> FormatVariant:
        return FormatVariant.LEGACY
