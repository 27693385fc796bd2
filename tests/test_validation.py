"""Tests for common-entity validation metrics."""

from __future__ import annotations

import pytest

from bloomlink.validation import (
    common_rows,
    compute_common_entity_metrics,
    generate_validation_report,
)

_TRUTH = [
    {"A": 1, "B": 10, "C": 100},
    {"A": 2, "B": 11, "C": 101},
]


class TestCommonRows:
    def test_rows_follow_party_order(self):
        rows = common_rows({"B": [10, 11], "A": [1, 2]}, ["A", "B", "C"])
        assert rows == {(1, 10, None), (2, 11, None)}

    def test_empty(self):
        assert common_rows({}, ["A"]) == set()


class TestComputeCommonEntityMetrics:
    def test_perfect(self):
        common = {"A": [1, 2], "B": [10, 11], "C": [100, 101]}
        metrics = compute_common_entity_metrics(common, _TRUTH)
        assert metrics["precision"] == 1.0
        assert metrics["recall"] == 1.0
        assert metrics["f1"] == 1.0

    def test_partial_recall(self):
        common = {"A": [1], "B": [10], "C": [100]}
        metrics = compute_common_entity_metrics(common, _TRUTH)
        assert metrics["precision"] == 1.0
        assert metrics["recall"] == pytest.approx(0.5)
        assert metrics["f1"] == pytest.approx(2 / 3)
        assert metrics["missed"] == 1

    def test_row_must_agree_for_every_party(self):
        common = {"A": [1, 2], "B": [10, 11], "C": [101, 100]}
        metrics = compute_common_entity_metrics(common, _TRUTH)
        assert metrics["correct"] == 0
        assert metrics["spurious"] == 2

    def test_empty_prediction(self):
        metrics = compute_common_entity_metrics({}, _TRUTH)
        assert metrics["precision"] == 0.0
        assert metrics["recall"] == 0.0
        assert metrics["expected"] == 2


class TestGenerateValidationReport:
    def test_contains_metrics(self):
        common = {"A": [1, 2], "B": [10, 11], "C": [100, 101]}
        report = generate_validation_report(compute_common_entity_metrics(common, _TRUTH))
        assert "predicted 2 / expected 2 / correct 2" in report
        assert "precision=1.0000" in report
        assert "Missed rows" not in report

    def test_advice_for_missed_rows(self):
        report = generate_validation_report(compute_common_entity_metrics({}, _TRUTH))
        assert "Missed rows" in report


class TestResolvedRun:
    def test_three_party_run_scores_perfectly(self, three_parties, small_settings):
        from bloomlink.pipeline import resolve_parties

        truth = [{"A": i, "B": 100 + i, "C": 200 + i} for i in range(5)]
        result = resolve_parties(three_parties, small_settings)
        metrics = compute_common_entity_metrics(result.common_entities, truth)
        assert metrics["correct"] == 5
        assert metrics["f1"] == 1.0
