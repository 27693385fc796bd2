"""Tests for ring synchronization of pairwise matches."""

from __future__ import annotations

import pytest

from bloomlink.matching.chain import synchronize_common_entities


def _ring():
    return {
        "A": {1: 10, 2: 11},
        "B": {10: 100, 11: 101},
        "C": {100: 1, 101: 2},
    }


class TestSynchronizeCommonEntities:
    """Forward filtering and backward recording around the party ring."""

    def test_three_party_closure(self):
        result = synchronize_common_entities(["A", "B", "C"], _ring())
        assert result == {"A": [1, 2], "B": [10, 11], "C": [100, 101]}

    def test_chain_break_drops_entity_everywhere(self):
        maps = _ring()
        del maps["B"][11]
        result = synchronize_common_entities(["A", "B", "C"], maps)
        assert result == {"A": [1], "B": [10], "C": [100]}

    def test_break_on_closing_link(self):
        maps = _ring()
        del maps["C"][101]
        result = synchronize_common_entities(["A", "B", "C"], maps)
        assert result == {"A": [1], "B": [10], "C": [100]}

    def test_positions_align_across_parties(self):
        maps = {
            "A": {5: 50, 3: 30, 4: 40},
            "B": {30: 300, 40: 400, 50: 500},
            "C": {300: 3, 400: 4, 500: 5},
        }
        result = synchronize_common_entities(["A", "B", "C"], maps)
        for t, a_id in enumerate(result["A"]):
            assert maps["A"][a_id] == result["B"][t]
            assert maps["B"][result["B"][t]] == result["C"][t]

    def test_many_to_one_collapse_reported_once(self):
        maps = {
            "A": {1: 10, 2: 10},
            "B": {10: 100},
            "C": {100: 1},
        }
        result = synchronize_common_entities(["A", "B", "C"], maps)
        assert result == {"A": [1], "B": [10], "C": [100]}

    def test_two_party_ring(self):
        maps = {"A": {1: 7, 2: 8}, "B": {7: 1, 8: 2}}
        assert synchronize_common_entities(["A", "B"], maps) == {"A": [1, 2], "B": [7, 8]}

    def test_traversal_order_is_a_parameter(self):
        maps = {"B": {10: 100}, "C": {100: 1}, "A": {1: 10}}
        result = synchronize_common_entities(["B", "C", "A"], maps)
        assert result == {"B": [10], "C": [100], "A": [1]}

    def test_empty_map_gives_empty_result(self):
        maps = _ring()
        maps["B"] = {}
        assert synchronize_common_entities(["A", "B", "C"], maps) == {}

    def test_missing_map_gives_empty_result(self):
        maps = _ring()
        del maps["C"]
        assert synchronize_common_entities(["A", "B", "C"], maps) == {}

    def test_single_party_gives_empty_result(self):
        assert synchronize_common_entities(["A"], {"A": {1: 1}}) == {}

    def test_empty_chain_is_fatal(self):
        with pytest.raises(ValueError, match="at least one party"):
            synchronize_common_entities([], {})

    def test_inputs_not_mutated(self):
        maps = _ring()
        synchronize_common_entities(["A", "B", "C"], maps)
        assert maps == _ring()
