"""Cluster indexing of Bloom filters."""

from bloomlink.clustering.kmeans import (
    ClusterAssignment,
    Clusterer,
    ClusterMembers,
    KMeansClusterer,
    cluster_filters,
    separate_clusters,
)

__all__ = [
    "ClusterAssignment",
    "ClusterMembers",
    "Clusterer",
    "KMeansClusterer",
    "cluster_filters",
    "separate_clusters",
]
