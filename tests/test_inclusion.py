"""
Tests for inclusion/exclusion list parsing and precursor matching.
"""

import pytest

from rawscan.core import InclusionItem, MSOrder, Reaction, inclusion_sort_key
from rawscan.io import InMemoryDataStore
from rawscan.processing import (
    InclusionListReconciler,
    MatchPolicy,
    match_precursors,
    parse_inclusion_list,
)

from conftest import MASS_LIST_METHOD, MS2_FILTER


def ms2_store(make_record, precursors):
    """Store of MS2 scans, one per (scan_number, precursor_mass) pair."""
    records = [
        make_record(
            scan_number, 0.01 * scan_number, ms_order=MSOrder.MS2, filter_text=MS2_FILTER,
            centroid=([150.0], [1.0]), reactions=[Reaction(precursor_mass)],
        )
        for scan_number, precursor_mass in precursors
    ]
    return InMemoryDataStore.from_records(records)


class TestParseInclusionList:
    """Mass list tables in instrument method text."""

    def test_parses_table_rows(self):
        items = parse_inclusion_list([MASS_LIST_METHOD])
        assert [item.descriptor for item in items] == ["CompoundA", "CompoundB"]
        assert [item.mass for item in items] == [500.1, 620.2]
        assert [item.threshold for item in items] == [1000.0, 500.0]
        assert all(item.scan_number == 0 for item in items)
        assert not any(item.is_exclusion for item in items)

    def test_text_without_marker_is_ignored(self):
        assert parse_inclusion_list(["Method Summary\nTune File: default"]) == []

    def test_lines_outside_markers_are_ignored(self):
        text = "\n".join([
            "Stray|100.0|1|0",
            "Mass List Table",
            "CompoundName|Mass|Threshold|Reserved",
            "Inside|200.0|1|0",
            "End Mass List Table",
            "After|300.0|1|0",
        ])
        assert [item.descriptor for item in parse_inclusion_list([text])] == ["Inside"]

    def test_malformed_lines_are_skipped(self):
        text = "\n".join([
            "Mass List Table",
            "ThreeFields|200.0|1",
            "FiveFields|200.0|1|0|extra",
            "NotANumber|abc|1|0",
            "Good|250.5|10|0",
            "End Mass List Table",
        ])
        items = parse_inclusion_list([text])
        assert items == [InclusionItem("Good", 250.5, 10.0)]

    def test_exclusion_table_flags_items(self):
        text = "\n".join([
            "Exclusion Mass List Table",
            "CompoundName|Mass|Threshold|Reserved",
            "Background|445.12|0|0",
            "End Mass List Table",
        ])
        (item,) = parse_inclusion_list([text])
        assert item.is_exclusion

    def test_windows_line_endings(self):
        items = parse_inclusion_list([MASS_LIST_METHOD.replace("\n", "\r\n")])
        assert len(items) == 2

    def test_several_methods(self):
        items = parse_inclusion_list([MASS_LIST_METHOD, "no table here", MASS_LIST_METHOD])
        assert len(items) == 4


class TestMatchPrecursors:
    """Assignment of MS2 scans to targets."""

    def test_single_scan_assigns_matching_target(self, make_record):
        items = parse_inclusion_list([MASS_LIST_METHOD])
        store = ms2_store(make_record, [(42, 500.10002)])
        with store:
            matched = match_precursors(store, items, 1e-5, 42, 42)
        assert matched[0].scan_number == 42
        assert matched[1].scan_number == 0

    def test_outside_tolerance_is_not_assigned(self, make_record):
        items = [InclusionItem("A", 500.1)]
        store = ms2_store(make_record, [(1, 500.2)])
        with store:
            matched = match_precursors(store, items, 1e-5, 1, 1)
        assert not matched[0].assigned

    def test_first_assignment_moves_to_next_target(self, make_record):
        items = [InclusionItem("A", 500.1), InclusionItem("A-repeat", 500.1)]
        store = ms2_store(make_record, [(1, 500.1), (2, 500.1)])
        with store:
            matched = match_precursors(store, items, 1e-5, 1, 2, MatchPolicy.FIRST_ASSIGNMENT)
        assert [item.scan_number for item in matched] == [1, 2]

    def test_last_match_overwrites(self, make_record):
        items = [InclusionItem("A", 500.1), InclusionItem("A-repeat", 500.1)]
        store = ms2_store(make_record, [(1, 500.1), (2, 500.1)])
        with store:
            matched = match_precursors(store, items, 1e-5, 1, 2, MatchPolicy.LAST_MATCH)
        assert [item.scan_number for item in matched] == [2, 0]

    def test_ms1_scans_are_ignored(self, make_record):
        store = InMemoryDataStore.from_records([make_record(1, 0.1, [500.1], [1.0])])
        with store:
            matched = match_precursors(store, [InclusionItem("A", 500.1)], 1e-5, 1, 1)
        assert not matched[0].assigned

    def test_input_items_are_not_modified(self, make_record):
        items = (InclusionItem("A", 500.1),)
        store = ms2_store(make_record, [(1, 500.1)])
        with store:
            match_precursors(store, items, 1e-5, 1, 1)
        assert items[0].scan_number == 0

    def test_empty_item_list(self, dda_store):
        with dda_store:
            assert match_precursors(dda_store, [], 1e-5, 1, 5) == ()


class TestInclusionListReconciler:
    """Parse and match against a whole store."""

    def test_reconcile_dda_store(self, dda_store):
        with dda_store:
            matched = InclusionListReconciler().reconcile(dda_store, relative_tolerance=1e-5)
        assert [(item.descriptor, item.scan_number) for item in matched] == [
            ("CompoundA", 2),
            ("CompoundB", 5),
        ]

    def test_store_without_methods(self, chromatogram_store):
        with chromatogram_store:
            assert InclusionListReconciler().reconcile(chromatogram_store, 1e-5) == ()


class TestInclusionSortKey:
    """Ordering of inclusion items."""

    def test_orders_by_descriptor_then_mass(self):
        items = [
            InclusionItem("b", 100.0),
            InclusionItem("a", 300.0),
            InclusionItem("a", 200.0),
            InclusionItem("B", 50.0),
        ]
        ordered = sorted(items, key=inclusion_sort_key)
        assert [(item.descriptor, item.mass) for item in ordered] == [
            ("B", 50.0), ("a", 200.0), ("a", 300.0), ("b", 100.0),
        ]

    def test_scan_number_breaks_ties(self):
        items = [InclusionItem("a", 1.0, scan_number=9), InclusionItem("a", 1.0, scan_number=3)]
        assert [item.scan_number for item in sorted(items, key=inclusion_sort_key)] == [3, 9]


@pytest.mark.parametrize("tolerance, expected", [(1e-5, 0), (1e-3, 7)])
def test_tolerance_scales_with_precursor(make_record, tolerance, expected):
    store = ms2_store(make_record, [(7, 1000.5)])
    with store:
        (item,) = match_precursors(store, [InclusionItem("X", 1000.0)], tolerance, 7, 7)
    assert item.scan_number == expected
