"""Quality of the synchronized common-entity set against known ground truth.

A predicted row (one id per party, aligned by position) counts as correct
only when every party's id agrees with the same ground-truth row.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


def common_rows(common: Mapping[str, Sequence[int]], parties: Sequence[str]) -> set[tuple]:
    """Row tuples of *common* with ids ordered by *parties* (missing parties as None)."""
    if not common:
        return set()
    width = max(len(ids) for ids in common.values())
    return {
        tuple(common[p][t] if p in common else None for p in parties)
        for t in range(width)
    }


def compute_common_entity_metrics(
    common_entities: Mapping[str, Sequence[int]],
    ground_truth: Sequence[Mapping[str, int]],
) -> dict[str, float]:
    """Precision, recall and F1 of *common_entities* against *ground_truth*.

    Parameters
    ----------
    common_entities:
        ``{party_id: [entity ids]}`` as returned by
        :func:`~bloomlink.matching.chain.synchronize_common_entities`.
    ground_truth:
        One ``{party_id: entity_id}`` dict per entity held by every party.

    Returns
    -------
    dict
        ``precision``, ``recall``, ``f1``, plus the counts ``predicted``,
        ``expected``, ``correct``, ``spurious`` and ``missed``.
    """
    parties = sorted({p for row in ground_truth for p in row} | set(common_entities))
    expected = {tuple(row.get(p) for p in parties) for row in ground_truth}
    predicted = common_rows(common_entities, parties)

    correct = len(predicted & expected)
    precision = _ratio(correct, len(predicted))
    recall = _ratio(correct, len(expected))

    return {
        "precision": precision,
        "recall": recall,
        "f1": _ratio(2 * correct, len(predicted) + len(expected)),
        "predicted": len(predicted),
        "expected": len(expected),
        "correct": correct,
        "spurious": len(predicted - expected),
        "missed": len(expected - predicted),
    }


def generate_validation_report(metrics: Mapping[str, float]) -> str:
    """Render :func:`compute_common_entity_metrics` output as plain text."""
    lines = [
        "Common entities across all parties",
        "-" * 36,
        f"predicted {metrics.get('predicted', 0):.0f}"
        f" / expected {metrics.get('expected', 0):.0f}"
        f" / correct {metrics.get('correct', 0):.0f}",
        f"spurious rows: {metrics.get('spurious', 0):.0f}",
        f"missed rows:   {metrics.get('missed', 0):.0f}",
        f"precision={metrics.get('precision', 0.0):.4f}"
        f"  recall={metrics.get('recall', 0.0):.4f}"
        f"  f1={metrics.get('f1', 0.0):.4f}",
    ]
    if metrics.get("spurious", 0):
        lines.append("Spurious rows: raise similarity_threshold or widen band_width.")
    if metrics.get("missed", 0):
        lines.append("Missed rows: lower similarity_threshold, narrow band_width or lower bucket_quorum.")
    return "\n".join(lines)
