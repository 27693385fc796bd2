"""Dice-coefficient matching between the member filters of two clusters.

Each source filter is matched to its single most similar target filter,
provided the similarity is strictly above the threshold.  The mapping is
not forced to be one-to-one: several source filters may pick the same
target.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import numpy as np

DEFAULT_SIMILARITY_THRESHOLD = 0.9


@dataclass(frozen=True)
class PairwiseMatchMap:
    """Matches between a party (self) and one other party.

    Keys and values are row indices when produced by :func:`compare_filters`
    and entity ids once translated by :func:`match_cluster_pair`.
    """

    self_to_other: dict[int, int] = field(default_factory=dict)
    other_to_self: dict[int, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.self_to_other)


def dice_coefficients(self_filters: np.ndarray, other_filters: np.ndarray) -> np.ndarray:
    """Dice coefficient of every (self, other) filter pair.

    Returns an ``(n_self, n_other)`` matrix with values in ``[0, 1]``.
    Pairs of two all-zero filters score 0.
    """
    a = np.atleast_2d(np.asarray(self_filters)).astype(np.int64)
    b = np.atleast_2d(np.asarray(other_filters)).astype(np.int64)
    if a.shape[1] != b.shape[1]:
        raise ValueError(
            f"filters are not comparable: widths {a.shape[1]} and {b.shape[1]}"
        )

    numerator = 2 * (a @ b.T)
    denominator = a.sum(axis=1)[:, None] + b.sum(axis=1)[None, :]
    dice = np.where(denominator > 0, numerator / np.maximum(denominator, 1), 0.0)
    return dice.astype(np.float64)


def compare_filters(
    self_filters: np.ndarray,
    other_filters: np.ndarray,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> PairwiseMatchMap:
    """Match every self filter to its best other filter above *threshold*.

    For row ``i`` the best column ``j*`` is the first index reaching the
    maximum Dice coefficient; ``i -> j*`` and ``j* -> i`` are recorded only
    if that maximum is strictly greater than *threshold*.  When several
    rows pick the same ``j*`` the reverse entry holds the last of them.
    """
    if not 0.0 <= threshold <= 1.0:
        raise ValueError("threshold must be within [0, 1]")

    self_to_other: dict[int, int] = {}
    other_to_self: dict[int, int] = {}
    if len(self_filters) == 0 or len(other_filters) == 0:
        return PairwiseMatchMap(self_to_other, other_to_self)

    dice = dice_coefficients(self_filters, other_filters)
    best = np.argmax(dice, axis=1)
    for i, j in enumerate(best):
        if dice[i, j] > threshold:
            self_to_other[i] = int(j)
            other_to_self[int(j)] = i

    return PairwiseMatchMap(self_to_other, other_to_self)


def match_cluster_pair(
    self_ids: Sequence[int] | np.ndarray,
    self_filters: np.ndarray,
    other_ids: Sequence[int] | np.ndarray,
    other_filters: np.ndarray,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> PairwiseMatchMap:
    """:func:`compare_filters` with row indices translated to entity ids."""
    local = compare_filters(self_filters, other_filters, threshold)
    return PairwiseMatchMap(
        self_to_other={int(self_ids[i]): int(other_ids[j]) for i, j in local.self_to_other.items()},
        other_to_self={int(other_ids[j]): int(self_ids[i]) for j, i in local.other_to_self.items()},
    )


def combine_match_maps(maps: Iterable[PairwiseMatchMap]) -> PairwiseMatchMap:
    """Union several match maps; entries of later maps override earlier ones."""
    self_to_other: dict[int, int] = {}
    other_to_self: dict[int, int] = {}
    for m in maps:
        self_to_other.update(m.self_to_other)
        other_to_self.update(m.other_to_self)
    return PairwiseMatchMap(self_to_other, other_to_self)
