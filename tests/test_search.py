"""Tests for filter chains and structure filters."""
from __future__ import annotations

import io

import pytest

from sdfpilot.reader.sdf_reader import SDFReader, SDFRecord
from sdfpilot.search import structure_filters as sf
from sdfpilot.search.filter_chain import AnyFilter, FilterChain


@pytest.fixture()
def records(sdf) -> list[SDFRecord]:
    text = sdf["file"](
        sdf["record"](sdf["v2000"]("ethanol"), [("ID", "1")]),
        sdf["record"](sdf["v2000"]("water", atoms=["O", "H", "H"], bonds=[(1, 2, 1), (1, 3, 1)])),
        sdf["record"](sdf["v2000"]("ethene", atoms=["C", "C"], bonds=[(1, 2, 2)]), [("ID", "")]),
        sdf["record"](sdf["v2000"]("r-group", atoms=["C", "R#"], bonds=[(1, 2, 1)])),
        sdf["record"](sdf["broken"]()),
    )
    return list(SDFReader(io.StringIO(text)))


def _titles(recs) -> list[str]:
    return [r.structure.title for r in recs]


# ---------------------------------------------------------------------------
# Structure filters
# ---------------------------------------------------------------------------

class TestStructureFilters:
    def test_max_atom_count(self, records) -> None:
        assert _titles(filter(sf.MaxAtomCount(2), records)) == ["ethene", "r-group"]

    def test_min_atom_count(self, records) -> None:
        assert _titles(filter(sf.MinAtomCount(3), records)) == ["ethanol", "water"]

    def test_heavy_atoms(self, records) -> None:
        assert _titles(filter(sf.MaxHeavyAtomCount(1), records)) == ["water", "r-group"]
        assert _titles(filter(sf.MinHeavyAtomCount(3), records)) == ["ethanol"]

    def test_bond_counts(self, records) -> None:
        assert _titles(filter(sf.MaxBondCount(1), records)) == ["ethene", "r-group"]
        assert _titles(filter(sf.MinBondCount(2), records)) == ["ethanol", "water"]

    def test_bonds_of_order(self, records) -> None:
        assert _titles(filter(sf.MinBondsOfOrder(2, 1), records)) == ["ethene"]
        assert len(list(filter(sf.MaxBondsOfOrder(2, 0), records))) == 3

    def test_pseudo_atoms(self, records) -> None:
        assert _titles(filter(sf.ContainsPseudoAtoms(), records)) == ["r-group"]
        assert "r-group" not in _titles(filter(sf.ContainsNoPseudoAtoms(), records))

    def test_has_property(self, records) -> None:
        assert _titles(filter(sf.HasProperty("ID"), records)) == ["ethanol", "ethene"]
        assert _titles(filter(sf.HasProperty("ID", non_empty=True), records)) == ["ethanol"]

    def test_failed_record_never_passes(self, records) -> None:
        failed = records[-1]
        assert failed.structure is None
        assert not sf.MaxAtomCount(1000)(failed)
        assert not sf.ContainsNoPseudoAtoms()(failed)

    def test_negative_limit_rejected(self) -> None:
        with pytest.raises(ValueError):
            sf.MaxAtomCount(-1)


# ---------------------------------------------------------------------------
# FilterChain / AnyFilter
# ---------------------------------------------------------------------------

class TestFilterChain:
    def test_empty_chain_passes_everything(self, records) -> None:
        assert len(list(FilterChain().apply(records))) == len(records)

    def test_and_semantics(self, records) -> None:
        chain = FilterChain().add(sf.MinAtomCount(2)).add(sf.ContainsNoPseudoAtoms())
        assert _titles(chain.apply(records)) == ["ethanol", "water", "ethene"]

    def test_combine_with_and(self, records) -> None:
        a = FilterChain().add(sf.MinAtomCount(3))
        b = FilterChain().add(sf.HasProperty("ID"))
        combined = a & b
        assert len(combined) == 2
        assert _titles(combined.apply(records)) == ["ethanol"]

    def test_repr(self) -> None:
        assert repr(FilterChain().add(sf.MaxAtomCount(1))) == "FilterChain(1 predicates)"


class TestAnyFilter:
    def test_or_semantics(self, records) -> None:
        f = AnyFilter(sf.ContainsPseudoAtoms(), sf.MinBondsOfOrder(2, 1))
        assert _titles(f.apply(records)) == ["ethene", "r-group"]

    def test_usable_inside_chain(self, records) -> None:
        chain = FilterChain().add(AnyFilter(sf.MaxAtomCount(2), sf.HasProperty("ID")))
        assert _titles(chain.apply(records)) == ["ethanol", "ethene", "r-group"]
