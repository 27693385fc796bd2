"""Attribute and structural Bloom filter encoding of entities.

Every entity yields two independent filters: one over its own attribute
strings, and one over the first attribute (its "name") of each neighbor.
No raw attribute leaves this stage; downstream stages only see bits.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np
import structlog
from unidecode import unidecode

from bloomlink.encoding.bloom import DEFAULT_FILTER_SIZE, DEFAULT_HASH_COUNT, BloomFilter
from bloomlink.models import Entity

logger = structlog.get_logger(__name__)


def normalize_attribute(value: str) -> str:
    """Transliterate to ASCII, lowercase and collapse whitespace."""
    return " ".join(unidecode(value).lower().split())


@dataclass(frozen=True)
class EncodedEntity:
    """The attribute and structural filters of one entity."""

    entity_id: int
    attribute_filter: BloomFilter
    structural_filter: BloomFilter


@dataclass(frozen=True)
class FilterSet:
    """Filters of a whole party stacked into ``(n_entities, filter_size)`` matrices.

    Row ``i`` of both matrices belongs to ``entity_ids[i]``.
    """

    entity_ids: np.ndarray
    attribute: np.ndarray
    structural: np.ndarray

    def __len__(self) -> int:
        return len(self.entity_ids)

    def matrix(self, kind: str) -> np.ndarray:
        if kind == "attribute":
            return self.attribute
        if kind == "structural":
            return self.structural
        raise ValueError(f"unknown filter kind: {kind!r}")


def encode_entity(
    entity: Entity,
    neighbor_lookup: Mapping[int, Entity] | Callable[[int], Entity | None],
    filter_size: int = DEFAULT_FILTER_SIZE,
    hash_count: int = DEFAULT_HASH_COUNT,
    normalize: bool = False,
) -> EncodedEntity:
    """Encode *entity* into its (attribute, structural) filter pair.

    Parameters
    ----------
    neighbor_lookup:
        Mapping or callable resolving a neighbor id to its :class:`Entity`.
        Neighbors that do not resolve, or that have no attributes,
        contribute nothing.
    normalize:
        Pass each string through :func:`normalize_attribute` before insertion.
    """
    prepare = normalize_attribute if normalize else str
    lookup = neighbor_lookup.get if isinstance(neighbor_lookup, Mapping) else neighbor_lookup

    attribute_filter = BloomFilter(filter_size, hash_count)
    for attr in entity.attributes:
        attribute_filter.insert(prepare(attr))

    structural_filter = BloomFilter(filter_size, hash_count)
    for neighbor_id in entity.neighbors:
        neighbor = lookup(neighbor_id)
        if neighbor is None or neighbor.name is None:
            continue
        structural_filter.insert(prepare(neighbor.name))

    return EncodedEntity(entity.id, attribute_filter, structural_filter)


def encode_party(
    entities: Sequence[Entity],
    filter_size: int = DEFAULT_FILTER_SIZE,
    hash_count: int = DEFAULT_HASH_COUNT,
    normalize: bool = False,
    max_workers: int = 1,
) -> FilterSet:
    """Encode every entity of one party and stack the filters into matrices.

    Rows follow the order of *entities*.  With ``max_workers > 1`` the
    entities are encoded on a thread pool; the output is identical.
    """
    by_id = {e.id: e for e in entities}

    def _encode(entity: Entity) -> EncodedEntity:
        return encode_entity(entity, by_id, filter_size, hash_count, normalize)

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            encoded = list(pool.map(_encode, entities))
    else:
        encoded = [_encode(e) for e in entities]

    missing = sum(1 for e in entities for n in e.neighbors if n not in by_id)
    if missing:
        logger.info("neighbors_not_found", count=missing)

    if not encoded:
        empty = np.zeros((0, filter_size), dtype=np.uint8)
        return FilterSet(np.zeros(0, dtype=np.uint64), empty, empty.copy())

    return FilterSet(
        entity_ids=np.array([e.entity_id for e in encoded], dtype=np.uint64),
        attribute=np.vstack([e.attribute_filter.bits for e in encoded]),
        structural=np.vstack([e.structural_filter.bits for e in encoded]),
    )
