"""MinHash cluster signatures and LSH bucketing."""

from bloomlink.lsh.buckets import (
    BucketTable,
    MergedBuckets,
    band_and_hash,
    build_local_buckets,
    candidate_buckets,
    candidate_cluster_pairs,
    combine_local_buckets,
    hash_band,
    merge_buckets,
    split_bands,
)
from bloomlink.lsh.minhash import MinHash, estimate_jaccard, generate_crvs

__all__ = [
    "BucketTable",
    "MergedBuckets",
    "MinHash",
    "band_and_hash",
    "build_local_buckets",
    "candidate_buckets",
    "candidate_cluster_pairs",
    "combine_local_buckets",
    "estimate_jaccard",
    "generate_crvs",
    "hash_band",
    "merge_buckets",
    "split_bands",
]
