"""Shared fixtures for resolution tests."""

from __future__ import annotations

import pytest

from bloomlink.config import Settings
from bloomlink.models import Entity, build_entities

_PEOPLE = {
    0: ["Alice", "Smith", "31", "Leeds"],
    1: ["Bob", "Jones", "45", "Bristol"],
    2: ["Carol", "Nguyen", "28", "Glasgow"],
    3: ["Dmitri", "Ivanov", "52", "Cardiff"],
    4: ["Eve", "Okafor", "39", "Belfast"],
}
_EDGES = [(0, 1), (1, 2), (2, 0), (3, 4), (4, 3)]


@pytest.fixture()
def john_and_jane() -> list[Entity]:
    """Two entities whose only shared attribute is the age "24"."""
    return [
        Entity(id=0, attributes=("John", "Doe", "24"), neighbors=(1,)),
        Entity(id=1, attributes=("Jane", "Dawson", "24"), neighbors=(0,)),
    ]


@pytest.fixture()
def three_parties() -> dict[str, list[Entity]]:
    """The same five people held by three parties under different local ids.

    Party A uses ids 0-4, party B 100-104 and party C 200-204.
    """
    parties = {}
    for name, offset in (("A", 0), ("B", 100), ("C", 200)):
        attributes = {i + offset: attrs for i, attrs in _PEOPLE.items()}
        edges = [(u + offset, v + offset) for u, v in _EDGES]
        parties[name] = build_entities(attributes, edges)
    return parties


@pytest.fixture()
def small_settings() -> Settings:
    """Settings sized for a handful of entities."""
    return Settings(cluster_count=2, kmeans_iterations=10, bucket_quorum=None)
