"""Cluster representative vectors (CRVs) via MinHash.

A CRV summarizes the bits set across a cluster's member filters.  Each
signature position corresponds to one seeded permutation of the bit
positions ``[0, filter_size)``; its value is the smallest permuted rank of
any set bit.  Two clusters with similar bit content agree in a share of
positions that estimates their Jaccard similarity.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from bloomlink.errors import SignatureError

DEFAULT_SIGNATURE_SIZE = 100


class MinHash:
    """A fixed family of ``size`` permutations over ``filter_size`` bit positions.

    Two instances built with the same ``(size, filter_size, seed)`` produce
    identical signatures for identical input, in any process.
    """

    def __init__(self, size: int = DEFAULT_SIGNATURE_SIZE, filter_size: int = 256, seed: int = 1):
        if size <= 0:
            raise ValueError("size must be positive")
        if filter_size <= 0:
            raise ValueError("filter_size must be positive")
        self.size = size
        self.filter_size = filter_size
        self.seed = seed
        rng = np.random.default_rng(seed)
        # ranks[p, b] is the position of bit b under permutation p
        self.ranks = np.stack([rng.permutation(filter_size) for _ in range(size)])

    def signature(self, bits: np.ndarray) -> np.ndarray:
        """MinHash signature of a single bit vector.

        Positions where the vector has no set bits hold ``filter_size``.
        """
        bits = np.asarray(bits).astype(bool)
        if bits.shape != (self.filter_size,):
            raise ValueError(
                f"expected a vector of {self.filter_size} bits, got shape {bits.shape}"
            )
        if not bits.any():
            return np.full(self.size, self.filter_size, dtype=np.int64)
        return self.ranks[:, bits].min(axis=1).astype(np.int64)

    def generate_crv(
        self,
        cluster_vectors: np.ndarray,
        sample_size: int | None = None,
    ) -> np.ndarray:
        """Signature of a cluster: MinHash of the OR of its member vectors.

        Parameters
        ----------
        cluster_vectors:
            ``(n_members, filter_size)`` bit matrix.
        sample_size:
            If set and smaller than the member count, only a seeded sample of
            that many members (chosen by row index) is aggregated.

        Raises
        ------
        SignatureError
            If the cluster has no members.
        """
        vectors = np.asarray(cluster_vectors)
        if vectors.ndim != 2 or len(vectors) == 0:
            raise SignatureError("cannot generate a CRV for an empty cluster")

        if sample_size and sample_size < len(vectors):
            rng = np.random.default_rng(self.seed)
            rows = np.sort(rng.choice(len(vectors), size=sample_size, replace=False))
            vectors = vectors[rows]

        return self.signature(vectors.astype(bool).any(axis=0))


def generate_crvs(
    minhash: MinHash,
    clusters: Sequence[np.ndarray],
    sample_size: int | None = None,
    max_workers: int = 1,
) -> list[np.ndarray | SignatureError]:
    """Generate one CRV per cluster matrix, in order.

    Failures are returned in place of the signature rather than raised, so a
    single empty cluster does not discard the others.
    """
    def _one(vectors: np.ndarray) -> np.ndarray | SignatureError:
        try:
            return minhash.generate_crv(vectors, sample_size)
        except SignatureError as e:
            return e

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(_one, clusters))
    return [_one(c) for c in clusters]


def estimate_jaccard(a: Sequence[int], b: Sequence[int]) -> float:
    """Share of signature positions on which *a* and *b* agree."""
    if len(a) != len(b):
        raise ValueError("signatures must have the same length")
    if len(a) == 0:
        return 0.0
    return float(np.mean(np.asarray(a) == np.asarray(b)))
