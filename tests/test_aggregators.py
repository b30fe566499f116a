"""Tests for the property counter and file summaries."""
from __future__ import annotations

import io

from sdfpilot.aggregators.counter import FAILED, MISSING, PropertyCounter
from sdfpilot.aggregators.summary import summarize
from sdfpilot.reader.sdf_reader import SDFReader


def _text(sdf) -> str:
    return sdf["file"](
        sdf["record"](sdf["v2000"](), [("SOURCE", "vendor-a")]),
        sdf["record"](sdf["v2000"](), [("SOURCE", "vendor-b")]),
        sdf["record"](sdf["v2000"](), [("SOURCE", "vendor-a")]),
        sdf["record"](sdf["v3000"]()),
        sdf["record"](sdf["broken"](), [("SOURCE", "vendor-a")]),
    )


class TestPropertyCounter:
    def test_counts_values(self, sdf) -> None:
        c = PropertyCounter("SOURCE")
        for record in SDFReader(io.StringIO(_text(sdf))):
            c.add(record)
        top = c.top(10)
        assert top[0] == ("vendor-a", 2)
        assert dict(top) == {"vendor-a": 2, "vendor-b": 1, MISSING: 1, FAILED: 1}
        assert c.total == 5

    def test_top_n_limit(self, sdf) -> None:
        c = PropertyCounter("SOURCE")
        for record in SDFReader(io.StringIO(_text(sdf))):
            c.add(record)
        assert len(c.top(2)) == 2


class TestSummarize:
    def test_summary_counts(self, sdf) -> None:
        summary = summarize(SDFReader(io.StringIO(_text(sdf))), by="SOURCE", top=1)
        assert summary["records"] == 5
        assert summary["failed"] == 1
        assert summary["surfaced"] == 5
        assert summary["variants"] == {"V2000": 4, "V3000": 1}
        assert summary["mean_atoms"] == 2.75
        assert summary["top"] == [("vendor-a", 2)]
        assert summary["fatal"] is False

    def test_summary_with_skip_still_counts_failures(self, sdf) -> None:
        summary = summarize(SDFReader(io.StringIO(_text(sdf)), skip=True))
        assert summary["records"] == 5
        assert summary["failed"] == 1
        assert summary["surfaced"] == 4
        assert summary["top"] == []
