"""Filter-level similarity matching and ring synchronization."""

from bloomlink.matching.chain import synchronize_common_entities
from bloomlink.matching.similarity import (
    PairwiseMatchMap,
    combine_match_maps,
    compare_filters,
    dice_coefficients,
    match_cluster_pair,
)

__all__ = [
    "PairwiseMatchMap",
    "combine_match_maps",
    "compare_filters",
    "dice_coefficients",
    "match_cluster_pair",
    "synchronize_common_entities",
]
