"""Bloom filter encoding of entity attributes and neighborhood structure."""

from bloomlink.encoding.bloom import BloomFilter, bit_positions
from bloomlink.encoding.encoder import (
    EncodedEntity,
    FilterSet,
    encode_entity,
    encode_party,
    normalize_attribute,
)

__all__ = [
    "BloomFilter",
    "EncodedEntity",
    "FilterSet",
    "bit_positions",
    "encode_entity",
    "encode_party",
    "normalize_attribute",
]
