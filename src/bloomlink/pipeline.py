"""Multi-party resolution orchestrator.

Runs the per-party encode -> cluster -> signature -> bucket stages, then
the cross-party bucket merge, candidate filtering, filter matching along
the party ring and the final synchronization.  Recoverable failures are
logged and collected as diagnostics; they never abort the run.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np
import structlog

from bloomlink.clustering.kmeans import (
    ClusterAssignment,
    Clusterer,
    ClusterMembers,
    KMeansClusterer,
    cluster_filters,
    separate_clusters,
)
from bloomlink.config import Settings
from bloomlink.encoding.encoder import FilterSet, encode_party
from bloomlink.errors import BloomLinkError
from bloomlink.lsh.buckets import (
    BucketTable,
    MergedBuckets,
    build_local_buckets,
    candidate_buckets,
    candidate_cluster_pairs,
    merge_buckets,
)
from bloomlink.lsh.minhash import MinHash, generate_crvs
from bloomlink.matching.chain import synchronize_common_entities
from bloomlink.matching.similarity import (
    PairwiseMatchMap,
    combine_match_maps,
    match_cluster_pair,
)
from bloomlink.models import Entity

logger = structlog.get_logger(__name__)

FILTER_KINDS = ("attribute", "structural")


@dataclass
class FilterSpace:
    """Clustering, signatures and buckets of one party in one filter space."""

    assignment: ClusterAssignment | None = None
    clusters: list[ClusterMembers] = field(default_factory=list)
    crvs: dict[int, np.ndarray] = field(default_factory=dict)
    buckets: BucketTable = field(default_factory=dict)


@dataclass
class PartyArtifacts:
    """Everything one party derives locally before any exchange."""

    party_id: str
    filters: FilterSet
    spaces: dict[str, FilterSpace] = field(default_factory=dict)
    diagnostics: list[str] = field(default_factory=list)

    def cluster(self, kind: str, index: int) -> ClusterMembers | None:
        space = self.spaces.get(kind)
        if space is None or index >= len(space.clusters):
            return None
        return space.clusters[index]


@dataclass
class ResolutionResult:
    """Outcome of :func:`resolve_parties`."""

    chain: list[str]
    parties: dict[str, PartyArtifacts]
    merged_buckets: MergedBuckets
    candidate_buckets: list[int]
    pairwise: dict[str, PairwiseMatchMap]
    common_entities: dict[str, list[int]]
    diagnostics: list[str] = field(default_factory=list)

    @property
    def stats(self) -> dict[str, int]:
        return {
            "parties": len(self.chain),
            "buckets": len(self.merged_buckets),
            "candidate_buckets": len(self.candidate_buckets),
            "pairwise_matches": sum(len(m) for m in self.pairwise.values()),
            "common_entities": len(next(iter(self.common_entities.values()), [])),
            "diagnostics": len(self.diagnostics),
        }


# ---------------------------------------------------------------------------
# Local (per-party) stages
# ---------------------------------------------------------------------------

def _build_space(
    party_id: str,
    kind: str,
    filters: FilterSet,
    settings: Settings,
    clusterer: Clusterer,
    minhash: MinHash,
    diagnostics: list[str],
) -> FilterSpace:
    vectors = filters.matrix(kind)
    space = FilterSpace()
    try:
        space.assignment = cluster_filters(
            filters.entity_ids,
            vectors,
            settings.cluster_count,
            settings.kmeans_iterations,
            clusterer,
        )
    except BloomLinkError as e:
        logger.warning("clustering_failed", party=party_id, kind=kind, error=str(e))
        diagnostics.append(f"{party_id}/{kind}: clustering failed: {e}")
        return space

    space.clusters = separate_clusters(filters.entity_ids, vectors, space.assignment)
    signatures = generate_crvs(
        minhash,
        [c.vectors for c in space.clusters],
        settings.crv_sample_size,
        settings.max_workers,
    )
    for members, signature in zip(space.clusters, signatures):
        if isinstance(signature, BloomLinkError):
            logger.warning(
                "cluster_signature_skipped",
                party=party_id,
                kind=kind,
                cluster=members.cluster,
                error=str(signature),
            )
            diagnostics.append(f"{party_id}/{kind}: cluster {members.cluster} skipped: {signature}")
            continue
        space.crvs[members.cluster] = signature

    space.buckets = build_local_buckets(party_id, space.crvs, settings.band_width)
    return space


def prepare_party(
    party_id: str,
    entities: Sequence[Entity],
    settings: Settings | None = None,
    clusterer: Clusterer | None = None,
) -> PartyArtifacts:
    """Run all local stages for one party.

    Attribute and structural filters are clustered independently; each
    space gets its own CRVs and bucket table.
    """
    settings = settings or Settings()
    clusterer = clusterer or KMeansClusterer(seed=settings.cluster_seed)
    minhash = MinHash(settings.minhash_size, settings.filter_size, settings.minhash_seed)

    filters = encode_party(
        entities,
        filter_size=settings.filter_size,
        hash_count=settings.hash_count,
        normalize=settings.normalize_attributes,
        max_workers=settings.max_workers,
    )
    artifacts = PartyArtifacts(party_id=party_id, filters=filters)
    for kind in FILTER_KINDS:
        artifacts.spaces[kind] = _build_space(
            party_id, kind, filters, settings, clusterer, minhash, artifacts.diagnostics
        )

    logger.info(
        "party_prepared",
        party=party_id,
        entities=len(filters),
        **{f"{kind}_buckets": len(space.buckets) for kind, space in artifacts.spaces.items()},
    )
    return artifacts


# ---------------------------------------------------------------------------
# Cross-party stages
# ---------------------------------------------------------------------------

def match_parties(
    self_artifacts: PartyArtifacts,
    other_artifacts: PartyArtifacts,
    merged: MergedBuckets,
    bucket_ids: Sequence[int],
    kind: str = "attribute",
    threshold: float = 0.9,
) -> PairwiseMatchMap:
    """Entity-level matches between two parties over their candidate cluster pairs.

    Cluster pairs are compared in ascending ``(self_cluster, other_cluster)``
    order and merged with :func:`combine_match_maps`, so an entity matched in
    several pairs keeps the match from the last pair, not the highest-scoring one.
    """
    pairs = candidate_cluster_pairs(
        merged, bucket_ids, self_artifacts.party_id, other_artifacts.party_id
    )
    results = []
    for self_cluster, other_cluster in pairs:
        mine = self_artifacts.cluster(kind, self_cluster)
        theirs = other_artifacts.cluster(kind, other_cluster)
        if mine is None or theirs is None:
            continue
        results.append(
            match_cluster_pair(
                mine.entity_ids, mine.vectors, theirs.entity_ids, theirs.vectors, threshold
            )
        )

    combined = combine_match_maps(results)
    logger.info(
        "parties_matched",
        party=self_artifacts.party_id,
        other=other_artifacts.party_id,
        cluster_pairs=len(pairs),
        matches=len(combined),
    )
    return combined


def resolve_parties(
    parties: Mapping[str, Sequence[Entity]],
    settings: Settings | None = None,
    chain: Sequence[str] | None = None,
    clusterer: Clusterer | None = None,
) -> ResolutionResult:
    """Resolve the entities common to every party.

    Parameters
    ----------
    parties:
        Party id -> that party's entities.
    chain:
        Ring traversal order; defaults to the order of *parties*.
    """
    settings = settings or Settings()
    chain = list(chain) if chain is not None else list(parties)
    if not chain:
        raise ValueError("at least one party is required")
    unknown = [p for p in chain if p not in parties]
    if unknown:
        raise ValueError(f"chain names unknown parties: {unknown}")

    kind = settings.match_on
    artifacts = {p: prepare_party(p, parties[p], settings, clusterer) for p in chain}
    diagnostics = [d for a in artifacts.values() for d in a.diagnostics]

    merged = merge_buckets(a.spaces[kind].buckets for a in artifacts.values())
    quorum = len(chain) if settings.bucket_quorum is None else settings.bucket_quorum
    bucket_ids = candidate_buckets(merged, quorum)
    if not bucket_ids:
        diagnostics.append(f"no bucket reached a quorum of {quorum} parties")

    pairwise: dict[str, PairwiseMatchMap] = {}
    if len(chain) > 1:
        for i, party in enumerate(chain):
            other = chain[(i + 1) % len(chain)]
            pairwise[party] = match_parties(
                artifacts[party],
                artifacts[other],
                merged,
                bucket_ids,
                kind,
                settings.similarity_threshold,
            )
            if not pairwise[party]:
                diagnostics.append(f"{party}->{other}: no filter pair above threshold")

    common = synchronize_common_entities(
        chain, {p: m.self_to_other for p, m in pairwise.items()}
    )
    result = ResolutionResult(
        chain=chain,
        parties=artifacts,
        merged_buckets=merged,
        candidate_buckets=bucket_ids,
        pairwise=pairwise,
        common_entities=common,
        diagnostics=diagnostics,
    )
    logger.info("resolution_complete", **result.stats)
    return result
