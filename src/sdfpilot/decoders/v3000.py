"""V3000 (extended) connection table decoder.

Every table line carries the ``M  V30 `` prefix; a trailing ``-`` continues
the entry on the next ``M  V30`` line.
"""
from __future__ import annotations

import logging
import shlex

from ..errors import MolfileError
from .base import Atom, Bond, DecodeResult, FormatVariant, Structure
from .v2000 import END_MARKER, HEADER_LINES, read_header

logger = logging.getLogger(__name__)

V30_PREFIX = "M  V30 "


def _join_continuations(lines: list[str], offset: int) -> list[tuple[int, str]]:
    """Strip the V30 prefix and merge continued lines; return (lineno, content) pairs."""
    entries: list[tuple[int, str]] = []
    pending: str | None = None
    pending_line = 0
    for lineno, line in enumerate(lines, start=offset + 1):
        if line.startswith(END_MARKER):
            break
        if not line.startswith(V30_PREFIX):
            continue
        content = line[len(V30_PREFIX):].rstrip()
        if pending is None:
            pending_line = lineno
            pending = ""
        if content.endswith("-"):
            pending += content[:-1]
            continue
        entries.append((pending_line, pending + content))
        pending = None
    if pending is not None:
        raise MolfileError("continuation line without follow-up", pending_line)
    return entries


def _tokens(content: str, lineno: int) -> list[str]:
    try:
        return shlex.split(content)
    except ValueError as exc:
        raise MolfileError(f"cannot tokenize entry: {exc}", lineno) from None


def _keywords(tokens: list[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for tok in tokens:
        key, sep, value = tok.partition("=")
        if sep:
            out[key.upper()] = value
    return out


def _as_int(raw: str, what: str, lineno: int) -> int:
    try:
        return int(raw)
    except ValueError:
        raise MolfileError(f"invalid {what} {raw!r}", lineno) from None


def _as_float(raw: str, what: str, lineno: int) -> float:
    try:
        return float(raw)
    except ValueError:
        raise MolfileError(f"invalid {what} {raw!r}", lineno) from None


class V3000Decoder:
    """Decode the CTAB block of a V3000 molfile. Sgroups and collections are ignored."""

    @property
    def variant(self) -> FormatVariant:
        return FormatVariant.V3000

    def decode(self, text: str) -> DecodeResult:
        try:
            return DecodeResult.success(self._decode(text))
        except MolfileError as exc:
            logger.debug("%s block rejected: %s", self.variant, exc)
            return DecodeResult.failure(str(exc))

    def _decode(self, text: str) -> Structure:
        lines = text.splitlines()
        title, program, comment = read_header(lines)
        entries = _join_continuations(lines[HEADER_LINES + 1:], HEADER_LINES + 1)

        declared: tuple[int, int] | None = None
        atoms: list[Atom] = []
        atom_ids: dict[int, int] = {}
        bonds: list[Bond] = []
        section: str | None = None
        in_ctab = False

        for lineno, content in entries:
            tokens = _tokens(content, lineno)
            if not tokens:
                continue
            head = tokens[0].upper()
            if head == "BEGIN" and len(tokens) > 1:
                block = tokens[1].upper()
                if block == "CTAB":
                    in_ctab = True
                elif in_ctab and section is None:
                    section = block
                continue
            if head == "END" and len(tokens) > 1:
                block = tokens[1].upper()
                if block == "CTAB":
                    in_ctab = False
                elif block == section:
                    section = None
                continue
            if not in_ctab:
                continue
            if head == "COUNTS" and section is None:
                if len(tokens) < 3:
                    raise MolfileError("COUNTS entry needs atom and bond counts", lineno)
                declared = (
                    _as_int(tokens[1], "atom count", lineno),
                    _as_int(tokens[2], "bond count", lineno),
                )
            elif section == "ATOM":
                atom_id, atom = self._read_atom(tokens, lineno)
                if atom_id in atom_ids:
                    raise MolfileError(f"duplicate atom index {atom_id}", lineno)
                atom_ids[atom_id] = len(atoms)
                atoms.append(atom)
            elif section == "BOND":
                bonds.append(self._read_bond(tokens, lineno, atom_ids))

        if declared is None:
            raise MolfileError("missing V30 COUNTS entry")
        if in_ctab or section is not None:
            raise MolfileError("unterminated V30 block")
        if declared != (len(atoms), len(bonds)):
            raise MolfileError(
                f"COUNTS declares {declared[0]} atoms and {declared[1]} bonds, "
                f"table has {len(atoms)} and {len(bonds)}"
            )
        return Structure(
            title=title,
            program=program,
            comment=comment,
            atoms=atoms,
            bonds=bonds,
            variant=self.variant,
        )

    @staticmethod
    def _read_atom(tokens: list[str], lineno: int) -> tuple[int, Atom]:
        if len(tokens) < 5:
            raise MolfileError("atom entry needs index, type and coordinates", lineno)
        kw = _keywords(tokens[6:])
        mass = kw.get("MASS")
        atom = Atom(
            symbol=tokens[1],
            x=_as_float(tokens[2], "x coordinate", lineno),
            y=_as_float(tokens[3], "y coordinate", lineno),
            z=_as_float(tokens[4], "z coordinate", lineno),
            charge=_as_int(kw.get("CHG", "0"), "charge", lineno),
            mass=_as_int(mass, "mass", lineno) if mass is not None else None,
        )
        return _as_int(tokens[0], "atom index", lineno), atom

    @staticmethod
    def _read_bond(tokens: list[str], lineno: int, atom_ids: dict[int, int]) -> Bond:
        if len(tokens) < 4:
            raise MolfileError("bond entry needs index, type and two atoms", lineno)
        ends = []
        for raw in tokens[2:4]:
            atom_id = _as_int(raw, "bond atom", lineno)
            if atom_id not in atom_ids:
                raise MolfileError(f"bond references unknown atom {atom_id}", lineno)
            ends.append(atom_ids[atom_id])
        kw = _keywords(tokens[4:])
        return Bond(
            begin=ends[0],
            end=ends[1],
            order=_as_int(tokens[1], "bond type", lineno),
            stereo=_as_int(kw.get("CFG", "0"), "bond configuration", lineno),
        )
