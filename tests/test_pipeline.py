"""End-to-end tests of the multi-party resolution pipeline."""

from __future__ import annotations

import numpy as np
import pytest

from bloomlink.config import Settings
from bloomlink.encoding.encoder import encode_party
from bloomlink.lsh.buckets import candidate_buckets, merge_buckets
from bloomlink.matching.similarity import compare_filters, dice_coefficients
from bloomlink.models import Entity
from bloomlink.pipeline import match_parties, prepare_party, resolve_parties

# =========================================================================
# prepare_party
# =========================================================================


class TestPrepareParty:
    """Local stages for a single party."""

    def test_john_and_jane_reproducible(self, john_and_jane, small_settings):
        first = prepare_party("A", john_and_jane, small_settings)
        second = prepare_party("A", john_and_jane, small_settings)

        for kind in ("attribute", "structural"):
            a, b = first.spaces[kind], second.spaces[kind]
            assert a.assignment.labels == b.assignment.labels
            assert a.crvs.keys() == b.crvs.keys()
            for cluster in a.crvs:
                assert np.array_equal(a.crvs[cluster], b.crvs[cluster])
            assert a.buckets == b.buckets

    def test_john_and_jane_in_separate_clusters(self, john_and_jane, small_settings):
        artifacts = prepare_party("A", john_and_jane, small_settings)
        labels = artifacts.spaces["attribute"].assignment.labels
        assert labels[0] != labels[1]
        assert len(artifacts.spaces["attribute"].crvs) == 2

    def test_john_and_jane_do_not_match(self, john_and_jane):
        filters = encode_party(john_and_jane)
        dice = dice_coefficients(filters.attribute[:1], filters.attribute[1:])
        assert dice[0, 0] < 0.9
        assert len(compare_filters(filters.attribute[:1], filters.attribute[1:], 0.9)) == 0

    def test_failed_clustering_becomes_diagnostic(self, john_and_jane):
        artifacts = prepare_party("A", john_and_jane, Settings(cluster_count=3))
        assert artifacts.spaces["attribute"].assignment is None
        assert artifacts.spaces["attribute"].buckets == {}
        assert any("clustering failed" in d for d in artifacts.diagnostics)

    def test_empty_cluster_skipped(self, small_settings):
        class AllInFirstCluster:
            def fit(self, vectors, k, iterations):
                return np.zeros(len(vectors), dtype=int), np.zeros((k, vectors.shape[1]))

        twins = [Entity(id=i, attributes=("Same", "Person")) for i in range(3)]
        artifacts = prepare_party("A", twins, small_settings, AllInFirstCluster())
        assert len(artifacts.spaces["attribute"].crvs) == 1
        assert any("skipped" in d for d in artifacts.diagnostics)

    def test_bucket_tags_name_the_party(self, three_parties, small_settings):
        artifacts = prepare_party("B", three_parties["B"], small_settings)
        for tags in artifacts.spaces["attribute"].buckets.values():
            assert {party for party, _ in tags} == {"B"}


# =========================================================================
# resolve_parties
# =========================================================================


class TestResolveParties:
    """Full multi-party runs over in-memory parties."""

    def test_three_parties_recover_all_common_entities(self, three_parties, small_settings):
        result = resolve_parties(three_parties, small_settings)
        assert result.common_entities == {
            "A": [0, 1, 2, 3, 4],
            "B": [100, 101, 102, 103, 104],
            "C": [200, 201, 202, 203, 204],
        }
        assert result.stats["common_entities"] == 5
        assert result.candidate_buckets

    def test_pairwise_maps_follow_the_ring(self, three_parties, small_settings):
        result = resolve_parties(three_parties, small_settings)
        assert result.pairwise["A"].self_to_other[3] == 103
        assert result.pairwise["B"].self_to_other[103] == 203
        assert result.pairwise["C"].self_to_other[203] == 3

    def test_entity_missing_from_one_party_drops_out(self, three_parties, small_settings):
        parties = dict(three_parties)
        parties["B"] = [e for e in parties["B"] if e.id != 102]
        result = resolve_parties(parties, small_settings)
        assert 2 not in result.common_entities.get("A", [])
        assert 202 not in result.common_entities.get("C", [])

    def test_custom_chain_order(self, three_parties, small_settings):
        result = resolve_parties(three_parties, small_settings, chain=["C", "A", "B"])
        assert result.chain == ["C", "A", "B"]
        assert result.common_entities["C"] == [200, 201, 202, 203, 204]
        assert result.common_entities["A"] == [0, 1, 2, 3, 4]

    def test_structural_matching(self, three_parties):
        settings = Settings(cluster_count=2, match_on="structural")
        result = resolve_parties(three_parties, settings)
        assert set(result.merged_buckets) == set(
            result.parties["A"].spaces["structural"].buckets
        )

    def test_unreachable_quorum_reports_diagnostic(self, three_parties, small_settings):
        settings = small_settings.model_copy(update={"bucket_quorum": 4})
        result = resolve_parties(three_parties, settings)
        assert result.candidate_buckets == []
        assert result.common_entities == {}
        assert any("quorum" in d for d in result.diagnostics)

    def test_zero_quorum_is_fatal(self, three_parties, small_settings):
        settings = small_settings.model_copy(update={"bucket_quorum": 0})
        with pytest.raises(ValueError, match="quorum"):
            resolve_parties(three_parties, settings)

    def test_single_party(self, three_parties, small_settings):
        result = resolve_parties({"A": three_parties["A"]}, small_settings)
        assert result.pairwise == {}
        assert result.common_entities == {}

    def test_unknown_party_in_chain(self, three_parties, small_settings):
        with pytest.raises(ValueError, match="unknown parties"):
            resolve_parties(three_parties, small_settings, chain=["A", "Z"])


class TestMatchParties:
    def test_identical_parties_match_every_entity(self, three_parties, small_settings):
        a = prepare_party("A", three_parties["A"], small_settings)
        b = prepare_party("B", three_parties["B"], small_settings)
        merged = merge_buckets([a.spaces["attribute"].buckets, b.spaces["attribute"].buckets])
        matches = match_parties(a, b, merged, candidate_buckets(merged, 2))
        assert matches.self_to_other == {i: i + 100 for i in range(5)}
