"""Shared pytest fixtures for sdfpilot tests."""
from __future__ import annotations

import io
from pathlib import Path
from typing import Iterable

import pytest


def _atom_line(symbol: str, charge_code: int = 0, x: float = 0.0) -> str:
    return f"{x:10.4f}{0.0:10.4f}{0.0:10.4f} {symbol:<3} 0{charge_code:3d}  0  0  0  0  0  0  0  0  0  0"


def _bond_line(a: int, b: int, order: int = 1) -> str:
    return f"{a:3d}{b:3d}{order:3d}  0  0  0  0"


def build_v2000(
    title: str = "ethanol",
    atoms: Iterable[str | tuple[str, int]] = ("C", "C", "O"),
    bonds: Iterable[tuple[int, int, int]] = ((1, 2, 1), (2, 3, 1)),
    version: str = "V2000",
    extra: Iterable[str] = (),
) -> list[str]:
    atom_rows = [(a, 0) if isinstance(a, str) else a for a in atoms]
    bond_rows = list(bonds)
    counts = f"{len(atom_rows):3d}{len(bond_rows):3d}  0  0  0  0  0  0  0  0999"
    if version:
        counts += f" {version}"
    return [
        title,
        "  sdfpilot 0101260000 2D",
        "",
        counts,
        *[_atom_line(sym, code, x=float(i)) for i, (sym, code) in enumerate(atom_rows)],
        *[_bond_line(*b) for b in bond_rows],
        *extra,
        "M  END",
    ]


def build_v3000(title: str = "methanolate") -> list[str]:
    return [
        title,
        "  sdfpilot 0101260000 2D",
        "",
        "  0  0  0     0  0            999 V3000",
        "M  V30 BEGIN CTAB",
        "M  V30 COUNTS 2 1 0 0 0",
        "M  V30 BEGIN ATOM",
        "M  V30 1 C 0 0 0 0",
        "M  V30 2 O 1.2990 0.7500 0 0 -",
        "M  V30 CHG=-1",
        "M  V30 END ATOM",
        "M  V30 BEGIN BOND",
        "M  V30 1 1 1 2",
        "M  V30 END BOND",
        "M  V30 END CTAB",
        "M  END",
    ]


def build_broken(title: str = "broken") -> list[str]:
    """A V2000 block that declares three atoms but lists one."""
    lines = build_v2000(title=title, atoms=("C", "C", "O"), bonds=())
    return lines[:5] + ["M  END"]


def build_record(block: list[str], props: Iterable[tuple[str, str]] = ()) -> list[str]:
    lines = list(block)
    for name, value in props:
        lines += [f">  <{name}>", *value.split("\n"), ""]
    return lines + ["$$$$"]


def build_sdf(*records: list[str]) -> str:
    return "".join(line + "\n" for rec in records for line in rec)


class FailingStream(io.StringIO):
    """StringIO that raises OSError once ``fail_after`` lines have been read."""

    def __init__(self, text: str, fail_after: int) -> None:
        super().__init__(text)
        self.fail_after = fail_after
        self.reads = 0

    def readline(self, size: int = -1) -> str:  # type: ignore[override]
        self.reads += 1
        if self.reads > self.fail_after:
            raise OSError("device unplugged")
        return super().readline(size)


@pytest.fixture()
def sdf() -> dict:
    """Builders for SD text: v2000, v3000, broken, record, file."""
    return {
        "v2000": build_v2000,
        "v3000": build_v3000,
        "broken": build_broken,
        "record": build_record,
        "file": build_sdf,
    }


@pytest.fixture()
def two_records_text() -> str:
    return build_sdf(
        build_record(build_v2000("ethanol"), [("ID", "MOL-1"), ("NAME", "ethanol")]),
        build_record(build_v2000("water", atoms=("O",), bonds=()), [("ID", "MOL-2")]),
    )


@pytest.fixture()
def broken_then_good_text() -> str:
    return build_sdf(
        build_record(build_broken(), [("ID", "BAD-1")]),
        build_record(build_v2000("ethanol"), [("ID", "MOL-1")]),
    )


@pytest.fixture()
def tmp_sdf_file(tmp_path: Path):
    """Return a factory that writes SD text to a temporary file."""

    def _make(text: str, name: str = "test.sdf") -> Path:
        p = tmp_path / name
        p.write_text(text, encoding="utf-8")
        return p

    return _make


@pytest.fixture()
def failing_stream():
    return FailingStream
