"""JSON-safe encodings of the artifacts parties exchange.

Bucket ids and entity ids are unsigned integers; they become decimal
string keys in JSON objects and are parsed back to ``int``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import numpy as np

from bloomlink.lsh.buckets import BucketTable, MergedBuckets
from bloomlink.matching.similarity import PairwiseMatchMap


def filters_to_records(entity_ids: Sequence[int], filters: np.ndarray) -> list[dict[str, Any]]:
    """``[{"id": 7, "bits": "0101..."}, ...]``"""
    return [
        {"id": int(entity_id), "bits": "".join(str(int(b)) for b in row)}
        for entity_id, row in zip(entity_ids, filters)
    ]


def records_to_filters(records: Iterable[Mapping[str, Any]]) -> tuple[np.ndarray, np.ndarray]:
    """Inverse of :func:`filters_to_records`; all bit strings must share a width."""
    records = list(records)
    ids = np.array([int(r["id"]) for r in records], dtype=np.uint64)
    widths = {len(r["bits"]) for r in records}
    if len(widths) > 1:
        raise ValueError(f"filters of different widths: {sorted(widths)}")
    width = widths.pop() if widths else 0
    filters = np.zeros((len(records), width), dtype=np.uint8)
    for i, r in enumerate(records):
        bits = r["bits"]
        if set(bits) - {"0", "1"}:
            raise ValueError(f"filter for entity {r['id']} is not a bit string")
        filters[i] = [c == "1" for c in bits]
    return ids, filters


def crvs_to_json(crvs: Mapping[int, Sequence[int]]) -> dict[str, list[int]]:
    return {str(cluster): [int(v) for v in sig] for cluster, sig in crvs.items()}


def crvs_from_json(data: Mapping[str, Sequence[int]]) -> dict[int, list[int]]:
    return {int(cluster): [int(v) for v in sig] for cluster, sig in data.items()}


def bucket_table_to_json(table: BucketTable) -> dict[str, list[list[Any]]]:
    return {
        str(bucket_id): [[party, cluster] for party, cluster in sorted(tags)]
        for bucket_id, tags in table.items()
    }


def bucket_table_from_json(data: Mapping[str, Sequence[Sequence[Any]]]) -> BucketTable:
    return {
        int(bucket_id): frozenset((str(party), int(cluster)) for party, cluster in tags)
        for bucket_id, tags in data.items()
    }


def merged_buckets_to_json(merged: MergedBuckets) -> dict[str, dict[str, list[int]]]:
    return {
        str(bucket_id): {party: sorted(clusters) for party, clusters in parties.items()}
        for bucket_id, parties in merged.items()
    }


def merged_buckets_from_json(data: Mapping[str, Mapping[str, Sequence[int]]]) -> MergedBuckets:
    return {
        int(bucket_id): {
            str(party): frozenset(int(c) for c in clusters) for party, clusters in parties.items()
        }
        for bucket_id, parties in data.items()
    }


def match_map_to_json(match_map: PairwiseMatchMap) -> dict[str, dict[str, int]]:
    return {
        "self_to_other": {str(k): v for k, v in match_map.self_to_other.items()},
        "other_to_self": {str(k): v for k, v in match_map.other_to_self.items()},
    }


def match_map_from_json(data: Mapping[str, Mapping[str, int]]) -> PairwiseMatchMap:
    return PairwiseMatchMap(
        self_to_other={int(k): int(v) for k, v in data.get("self_to_other", {}).items()},
        other_to_self={int(k): int(v) for k, v in data.get("other_to_self", {}).items()},
    )


def common_entities_to_json(common: Mapping[str, Sequence[int]]) -> dict[str, list[int]]:
    """Party id -> row-aligned entity ids; order is preserved."""
    return {party: [int(i) for i in ids] for party, ids in common.items()}


def common_entities_from_json(data: Mapping[str, Sequence[int]]) -> dict[str, list[int]]:
    lengths = {len(ids) for ids in data.values()}
    if len(lengths) > 1:
        raise ValueError(f"common entity lists are not row-aligned: lengths {sorted(lengths)}")
    return {str(party): [int(i) for i in ids] for party, ids in data.items()}
