"""Privacy-preserving multi-party entity resolution."""

from __future__ import annotations

from bloomlink.config import Settings, get_settings
from bloomlink.errors import BloomLinkError, ClusteringError, SignatureError
from bloomlink.models import Entity, build_entities
from bloomlink.pipeline import (
    PartyArtifacts,
    ResolutionResult,
    match_parties,
    prepare_party,
    resolve_parties,
)

__all__ = [
    "BloomLinkError",
    "ClusteringError",
    "Entity",
    "PartyArtifacts",
    "ResolutionResult",
    "Settings",
    "SignatureError",
    "build_entities",
    "get_settings",
    "match_parties",
    "prepare_party",
    "resolve_parties",
]
