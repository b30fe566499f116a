"""Tests for the sdfpilot command line interface."""
from __future__ import annotations

import io
import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from sdfpilot.cli import _emit, main
from sdfpilot.reader.sdf_reader import SDFReader
from sdfpilot.search.filter_chain import FilterChain
from sdfpilot.search.structure_filters import MaxAtomCount


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def sdf_path(tmp_sdf_file, broken_then_good_text):
    return tmp_sdf_file(broken_then_good_text)


class TestRead:
    def test_json_output_includes_failed_record(self, runner, sdf_path) -> None:
        result = runner.invoke(main, ["read", str(sdf_path), "--no-skip", "--output", "json"])
        assert result.exit_code == 0, result.output
        rows = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
        assert [r["ok"] for r in rows] == [False, True]
        assert rows[1]["properties"] == {"ID": "MOL-1"}
        assert rows[1]["start_line"] == 11

    def test_skip_hides_failed_record(self, runner, sdf_path) -> None:
        result = runner.invoke(main, ["read", str(sdf_path), "--skip", "--output", "json"])
        assert result.exit_code == 0, result.output
        rows = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
        assert len(rows) == 1
        assert rows[0]["title"] == "ethanol"

    def test_table_output(self, runner, sdf_path) -> None:
        result = runner.invoke(main, ["read", str(sdf_path), "--skip", "--output", "table", "--fields", "ID"])
        assert result.exit_code == 0, result.output
        assert "ethanol" in result.output

    def test_missing_file(self, runner, tmp_path) -> None:
        result = runner.invoke(main, ["read", str(tmp_path / "nope.sdf")])
        assert result.exit_code != 0


class TestStats:
    def test_stats_without_cache(self, runner, sdf_path) -> None:
        result = runner.invoke(main, ["stats", str(sdf_path), "--by", "ID", "--no-cache"])
        assert result.exit_code == 0, result.output
        assert "records" in result.output
        assert "MOL-1" in result.output

    def test_stats_uses_cached_summary(self, runner, sdf_path) -> None:
        cached = {
            "records": 7, "failed": 2, "surfaced": 7, "lines": 70, "fatal": False,
            "variants": {"V2000": 7}, "mean_atoms": 3.0, "by": None, "top": [],
        }
        with patch("sdfpilot.cache.redis_cache.SummaryCache._connect"), \
                patch("sdfpilot.cache.redis_cache.SummaryCache.get", return_value=cached):
            result = runner.invoke(main, ["stats", str(sdf_path)])
        assert result.exit_code == 0, result.output
        assert "70" in result.output


class TestFilter:
    def test_filter_by_atom_count(self, runner, tmp_sdf_file, sdf) -> None:
        path = tmp_sdf_file(sdf["file"](
            sdf["record"](sdf["v2000"]("ethanol")),
            sdf["record"](sdf["v2000"]("water", atoms=["O"], bonds=[])),
        ))
        result = runner.invoke(main, ["filter", str(path), "--max-atoms", "1", "--output", "json"])
        assert result.exit_code == 0, result.output
        rows = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
        assert [r["title"] for r in rows] == ["water"]

    def test_negative_threshold_rejected(self, runner, sdf_path) -> None:
        result = runner.invoke(main, ["filter", str(sdf_path), "--max-atoms", "-1"])
        assert result.exit_code != 0


class TestLimit:
    @pytest.fixture()
    def one_small_then_many(self, sdf) -> SDFReader:
        text = sdf["file"](
            sdf["record"](sdf["v2000"]("water", atoms=["O"], bonds=[])),
            *[sdf["record"](sdf["v2000"](f"ethanol-{i}")) for i in range(500)],
        )
        return SDFReader(io.StringIO(text))

    def test_filtered_limit_stops_reading(self, one_small_then_many) -> None:
        reader = one_small_then_many
        chain = FilterChain().add(MaxAtomCount(1))
        assert _emit(chain.apply(reader), Path("x.sdf"), "json", 1, []) == 1
        assert reader.records_seen == 1

    @pytest.mark.parametrize("output_fmt", ["stream", "json", "table"])
    def test_limit_stops_reading(self, one_small_then_many, output_fmt) -> None:
        reader = one_small_then_many
        assert _emit(reader, Path("x.sdf"), output_fmt, 3, []) == 3
        assert reader.records_seen == 3

    @pytest.mark.parametrize("output_fmt", ["stream", "json", "table"])
    def test_zero_limit_shows_all(self, one_small_then_many, output_fmt) -> None:
        reader = one_small_then_many
        assert _emit(reader, Path("x.sdf"), output_fmt, 0, []) == 501
        assert not reader.has_next()

    def test_read_limit_option(self, runner, sdf_path) -> None:
        result = runner.invoke(main, ["read", str(sdf_path), "--no-skip", "--output", "json", "--limit", "1"])
        assert result.exit_code == 0, result.output
        rows = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
        assert len(rows) == 1
        assert "1 records read" in result.output
