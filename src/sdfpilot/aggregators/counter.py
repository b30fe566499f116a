"""Count SD records by a data item value."""
from __future__ import annotations

from collections import Counter as _Counter

from ..reader.sdf_reader import SDFRecord

MISSING = "(missing)"
FAILED = "(no structure)"


class PropertyCounter:
    """Count occurrences of a data item value across records."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._counts: _Counter[str] = _Counter()

    def add(self, record: SDFRecord) -> None:
        if record.structure is None:
            value = FAILED
        else:
            value = record.properties.get(self._name, MISSING)
        self._counts[value] += 1

    def top(self, n: int = 10) -> list[tuple[str, int]]:
        return self._counts.most_common(n)

    @property
    def total(self) -> int:
        return sum(self._counts.values())
