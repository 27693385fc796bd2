"""Partitioning of Bloom filter vectors into k clusters.

The clustering primitive is pluggable: anything satisfying
:class:`Clusterer` (vectors, k, iterations -> labels, centroids) can be
used.  :class:`KMeansClusterer` is the default, wrapping scikit-learn's
``KMeans`` with a fixed random state.
"""

from __future__ import annotations

import warnings
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import numpy as np
import structlog
from sklearn.cluster import KMeans
from sklearn.exceptions import ConvergenceWarning

from bloomlink.errors import ClusteringError

logger = structlog.get_logger(__name__)


class Clusterer(Protocol):
    def fit(
        self, vectors: np.ndarray, k: int, iterations: int
    ) -> tuple[np.ndarray, np.ndarray]:
        """Return ``(labels, centroids)`` or raise :class:`ClusteringError`."""
        ...


@dataclass(frozen=True)
class ClusterAssignment:
    """Result of one clustering run over a party's filters."""

    labels: dict[int, int]
    centroids: np.ndarray

    @property
    def k(self) -> int:
        return len(self.centroids)

    def members(self, cluster: int) -> list[int]:
        """Entity ids assigned to *cluster*, in input order."""
        return [entity_id for entity_id, label in self.labels.items() if label == cluster]


@dataclass(frozen=True)
class ClusterMembers:
    """The filters of one cluster, with the entity id of every row."""

    cluster: int
    entity_ids: np.ndarray
    vectors: np.ndarray

    def __len__(self) -> int:
        return len(self.entity_ids)


# ---------------------------------------------------------------------------
# Default primitive
# ---------------------------------------------------------------------------

class KMeansClusterer:
    """Seeded scikit-learn k-means (k-means++ seeding, one initialization)."""

    def __init__(self, seed: int = 42):
        self.seed = seed

    def fit(self, vectors: np.ndarray, k: int, iterations: int) -> tuple[np.ndarray, np.ndarray]:
        data = np.asarray(vectors, dtype=np.float64)
        if data.ndim != 2 or len(data) == 0:
            raise ClusteringError("cannot cluster an empty set of vectors")
        if len(data) < k:
            raise ClusteringError(f"cannot form {k} clusters from {len(data)} vectors")

        model = KMeans(n_clusters=k, max_iter=iterations, random_state=self.seed, n_init=1)
        with warnings.catch_warnings():
            # Fewer distinct points than k leaves some clusters empty
            warnings.simplefilter("ignore", ConvergenceWarning)
            model.fit(data)
        return model.labels_, model.cluster_centers_


# ---------------------------------------------------------------------------
# Cluster indexer
# ---------------------------------------------------------------------------

def cluster_filters(
    entity_ids: Sequence[int] | np.ndarray,
    vectors: np.ndarray,
    k: int,
    iterations: int,
    clusterer: Clusterer | None = None,
) -> ClusterAssignment:
    """Partition a party's filters into *k* clusters.

    Raises
    ------
    ValueError
        If ``k`` or ``iterations`` is not positive, or ids and vectors differ
        in length.
    ClusteringError
        If the primitive fails or returns an inconsistent result.
    """
    if k <= 0:
        raise ValueError("k must be positive")
    if iterations <= 0:
        raise ValueError("iterations must be positive")
    if len(entity_ids) != len(vectors):
        raise ValueError("entity_ids and vectors must have the same length")

    clusterer = clusterer or KMeansClusterer()
    labels, centroids = clusterer.fit(vectors, k, iterations)

    if len(centroids) != k:
        raise ClusteringError(f"expected {k} centroids, got {len(centroids)}")
    if len(labels) != len(entity_ids):
        raise ClusteringError("clusterer returned a label count that does not match its input")

    assignment = ClusterAssignment(
        labels={int(e): int(label) for e, label in zip(entity_ids, labels)},
        centroids=np.asarray(centroids),
    )
    logger.debug(
        "filters_clustered",
        k=k,
        sizes=[int((np.asarray(labels) == c).sum()) for c in range(k)],
    )
    return assignment


def separate_clusters(
    entity_ids: Sequence[int] | np.ndarray,
    vectors: np.ndarray,
    assignment: ClusterAssignment,
) -> list[ClusterMembers]:
    """Split a filter matrix into one :class:`ClusterMembers` per cluster index.

    Clusters with no members are included (with zero rows) so that the
    result always has ``assignment.k`` entries.
    """
    ids = np.asarray(entity_ids, dtype=np.uint64)
    labels = np.array([assignment.labels[int(e)] for e in ids], dtype=np.int64)
    return [
        ClusterMembers(cluster=c, entity_ids=ids[labels == c], vectors=vectors[labels == c])
        for c in range(assignment.k)
    ]
