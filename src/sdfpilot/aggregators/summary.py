"""Whole-file summary: record counts, failures, dialects and top data item values."""
from __future__ import annotations

from collections import Counter as _Counter
from typing import Any

from ..reader.sdf_reader import SDFReader
from .counter import PropertyCounter


def summarize(reader: SDFReader, by: str | None = None, top: int = 10) -> dict[str, Any]:
    """Read ``reader`` to the end and return a JSON-serializable summary.

    Failed records are always counted, whatever the reader's skip setting.
    """
    variants: _Counter[str] = _Counter()
    counter = PropertyCounter(by) if by else None
    atoms = 0
    surfaced = 0

    for record in reader:
        surfaced += 1
        variants[str(record.variant)] += 1
        if record.structure is not None:
            atoms += record.structure.atom_count
        if counter is not None:
            counter.add(record)

    decoded = reader.records_seen - reader.failed_records
    return {
        "records": reader.records_seen,
        "failed": reader.failed_records,
        "surfaced": surfaced,
        "lines": reader.current_line,
        "fatal": reader.ended_with_fatal_error,
        "variants": dict(variants),
        "mean_atoms": round(atoms / decoded, 2) if decoded else 0.0,
        "by": by,
        "top": counter.top(top) if counter is not None else [],
    }
