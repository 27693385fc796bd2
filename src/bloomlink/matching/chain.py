"""Reconciliation of pairwise matches around a ring of parties.

Given each party's match map toward the next party in the ring
``P0 -> P1 -> ... -> Pn-1 -> P0``, find the entities matched at every hop
and report each party's own id for them, row-aligned across parties.

Two fixed passes, each visiting every party exactly once:

1. Forward: start from the keys of P0's map and carry each id hop by hop;
   an id missing from a party's map drops out.  What returns to P0 are the
   P0 ids with an unbroken chain of matches.
2. Backward: walk the ring again from those survivors and record, per
   party, the id each survivor maps to at that hop.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import structlog

logger = structlog.get_logger(__name__)


def _walk(start: int, hops: Sequence[Mapping[int, int]]) -> list[int] | None:
    """Ids of *start* at every party, or None if any hop (including the closing one) breaks."""
    row = [start]
    for mapping in hops[:-1]:
        if row[-1] not in mapping:
            return None
        row.append(mapping[row[-1]])
    return row if row[-1] in hops[-1] else None


def synchronize_common_entities(
    chain: Sequence[str],
    next_maps: Mapping[str, Mapping[int, int]],
) -> dict[str, list[int]]:
    """Compute the entities recognized as common by every party in *chain*.

    Parameters
    ----------
    chain:
        Party ids in traversal order.  The last party links back to the first.
    next_maps:
        For each party, its ``self -> other`` entity id map toward the next
        party in *chain*.

    Returns
    -------
    dict[str, list[int]]
        ``{party_id: [entity ids]}`` where position ``t`` refers to the same
        entity for every party.  Empty if the chain has a single party or any
        party's map is missing or empty.

    Raises
    ------
    ValueError
        If *chain* is empty.
    """
    if len(chain) == 0:
        raise ValueError("chain must contain at least one party")
    if len(chain) < 2:
        logger.warning("chain_too_short", parties=len(chain))
        return {}

    empty = [party for party in chain if not next_maps.get(party)]
    if empty:
        logger.warning("chain_has_empty_links", parties=empty)
        return {}

    hops = [next_maps[party] for party in chain]

    # Forward pass: filter
    ids = sorted(hops[0])
    for step, mapping in enumerate(hops):
        ids = [mapping[i] for i in ids if i in mapping]
        logger.debug("chain_forward_hop", party=chain[step], surviving=len(ids))
    survivors = list(dict.fromkeys(ids))

    # Backward pass: record
    rows: list[list[int]] = []
    for start in survivors:
        row = _walk(start, hops)
        if row is None:
            logger.debug("chain_row_dropped", start=start)
            continue
        rows.append(row)

    result = {party: [row[step] for row in rows] for step, party in enumerate(chain)}
    logger.info("common_entities_synchronized", parties=len(chain), common=len(rows))
    return result
