"""LSH banding of CRVs and cross-party bucket reconciliation.

Local phase: each party splits every CRV into contiguous bands and hashes
each band to a bucket id, tagged with ``(party_id, cluster_index)``.
Merge phase: bucket tables from all parties are unioned by bucket id.
Filter phase: only buckets reached by a quorum of distinct parties are
kept as candidates.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping, Sequence

import structlog

logger = structlog.get_logger(__name__)

Tag = tuple[str, int]
BucketTable = dict[int, frozenset[Tag]]
MergedBuckets = dict[int, dict[str, frozenset[int]]]

DEFAULT_BAND_WIDTH = 10


def hash_band(band: Sequence[int]) -> int:
    """Unsigned 64-bit bucket id of one band.

    Values are comma-delimited before hashing so ``[1, 23]`` and ``[12, 3]``
    land in different buckets.
    """
    text = ",".join(str(int(v)) for v in band)
    digest = hashlib.blake2b(text.encode("ascii"), digest_size=8).digest()
    return int.from_bytes(digest, "big")


def split_bands(signature: Sequence[int], band_width: int) -> list[list[int]]:
    """Contiguous, non-overlapping bands of *band_width* values.

    A trailing band shorter than *band_width* is kept.
    """
    if band_width <= 0:
        raise ValueError("band_width must be positive")
    values = [int(v) for v in signature]
    return [values[i : i + band_width] for i in range(0, len(values), band_width)]


def band_and_hash(signature: Sequence[int], band_width: int = DEFAULT_BAND_WIDTH) -> list[int]:
    """One bucket id per band of *signature*, in band order."""
    return [hash_band(band) for band in split_bands(signature, band_width)]


# ---------------------------------------------------------------------------
# Local phase
# ---------------------------------------------------------------------------

def build_local_buckets(
    party_id: str,
    crvs: Mapping[int, Sequence[int]],
    band_width: int = DEFAULT_BAND_WIDTH,
) -> BucketTable:
    """Bucket table of one party: bucket id -> ``{(party_id, cluster), ...}``."""
    table: dict[int, set[Tag]] = {}
    for cluster, signature in crvs.items():
        for bucket_id in band_and_hash(signature, band_width):
            table.setdefault(bucket_id, set()).add((party_id, int(cluster)))
    return {bucket_id: frozenset(tags) for bucket_id, tags in table.items()}


def combine_local_buckets(tables: Iterable[Mapping[int, Iterable[Tag]]]) -> BucketTable:
    """Union several partial bucket tables (e.g. one per worker) into one."""
    combined: dict[int, set[Tag]] = {}
    for table in tables:
        for bucket_id, tags in table.items():
            combined.setdefault(bucket_id, set()).update(tags)
    return {bucket_id: frozenset(tags) for bucket_id, tags in combined.items()}


# ---------------------------------------------------------------------------
# Merge / filter phases
# ---------------------------------------------------------------------------

def merge_buckets(tables: Iterable[Mapping[int, Iterable[Tag]]]) -> MergedBuckets:
    """Group every party's tags by bucket id and party.

    Returns ``{bucket_id: {party_id: frozenset(cluster indices)}}``.  No tag
    is dropped; duplicate tags collapse.
    """
    merged: dict[int, dict[str, set[int]]] = {}
    for table in tables:
        for bucket_id, tags in table.items():
            parties = merged.setdefault(bucket_id, {})
            for party_id, cluster in tags:
                parties.setdefault(party_id, set()).add(cluster)
    return {
        bucket_id: {party: frozenset(clusters) for party, clusters in parties.items()}
        for bucket_id, parties in merged.items()
    }


def candidate_buckets(merged: Mapping[int, Mapping[str, Iterable[int]]], quorum: int) -> list[int]:
    """Bucket ids reached by at least *quorum* distinct parties, ascending."""
    if quorum <= 0:
        raise ValueError("quorum must be positive")
    kept = sorted(bucket_id for bucket_id, parties in merged.items() if len(parties) >= quorum)
    logger.debug("candidate_buckets_filtered", total=len(merged), kept=len(kept), quorum=quorum)
    return kept


def candidate_cluster_pairs(
    merged: Mapping[int, Mapping[str, Iterable[int]]],
    bucket_ids: Iterable[int],
    self_party: str,
    other_party: str,
) -> list[tuple[int, int]]:
    """Sorted ``(self_cluster, other_cluster)`` pairs sharing any of *bucket_ids*."""
    pairs: set[tuple[int, int]] = set()
    for bucket_id in bucket_ids:
        parties = merged.get(bucket_id, {})
        if self_party not in parties or other_party not in parties:
            continue
        pairs.update((a, b) for a in parties[self_party] for b in parties[other_party])
    return sorted(pairs)
