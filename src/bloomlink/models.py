"""Entity records consumed by the encoding stage."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Entity:
    """One party-local record: its attributes and its outgoing neighbor links."""

    id: int
    attributes: tuple[str, ...] = ()
    neighbors: tuple[int, ...] = ()

    @property
    def name(self) -> str | None:
        """The canonical "name" field (first attribute) used as a structural proxy."""
        return self.attributes[0] if self.attributes else None


def build_entities(
    attributes: dict[int, list[str]],
    edges: list[tuple[int, int]] | None = None,
) -> list[Entity]:
    """Assemble :class:`Entity` records from an attribute table and an edge list.

    Edges are directed ``(u, v)`` pairs; ``v`` becomes a neighbor of ``u``.
    Edges whose source has no attribute row are ignored.  Entities are
    returned in ascending id order.
    """
    neighbors: dict[int, list[int]] = {}
    for u, v in edges or []:
        neighbors.setdefault(u, []).append(v)

    return [
        Entity(
            id=entity_id,
            attributes=tuple(attributes[entity_id]),
            neighbors=tuple(neighbors.get(entity_id, ())),
        )
        for entity_id in sorted(attributes)
    ]
