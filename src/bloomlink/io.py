"""Plain-text loaders for party data and writers for encoded filters.

Entity files hold one ``id attr1 attr2 ...`` record per line; edge lists
hold one ``u v`` pair per line.  Blank lines are skipped.
"""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pandas as pd
import structlog

from bloomlink.encoding.encoder import FilterSet
from bloomlink.models import Entity, build_entities

logger = structlog.get_logger(__name__)

ENTITY_FILE = "entities.txt"
EDGE_FILE = "edges.txt"


def read_attributes(path: Path) -> dict[int, list[str]]:
    """Read ``id attr1 attr2 ...`` lines into ``{id: [attrs]}``."""
    records: dict[int, list[str]] = {}
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            parts = line.split()
            if not parts:
                continue
            try:
                entity_id = int(parts[0])
            except ValueError as e:
                msg = f"{path}:{line_no}: entity id is not an integer: {parts[0]!r}"
                raise ValueError(msg) from e
            records[entity_id] = parts[1:]
    logger.info("read_entity_attributes", path=str(path), count=len(records))
    return records


def read_edge_list(path: Path) -> list[tuple[int, int]]:
    """Read a whitespace-separated ``u v`` edge list."""
    df = pd.read_csv(
        path,
        sep=r"\s+",
        header=None,
        names=["source", "target"],
        dtype="int64",
        skip_blank_lines=True,
    )
    edges = list(zip(df["source"].tolist(), df["target"].tolist()))
    logger.info("read_edge_list", path=str(path), count=len(edges))
    return edges


def read_party(directory: Path) -> list[Entity]:
    """Load a party from ``entities.txt`` and an optional ``edges.txt``."""
    attributes = read_attributes(directory / ENTITY_FILE)
    edge_path = directory / EDGE_FILE
    edges = read_edge_list(edge_path) if edge_path.exists() and edge_path.stat().st_size else []
    return build_entities(attributes, edges)


def write_filters(path: Path, entity_ids: np.ndarray, filters: np.ndarray) -> None:
    """Write ``id,b0,b1,...`` lines, one per filter row."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for entity_id, bits in zip(entity_ids, filters):
            f.write(",".join([str(int(entity_id)), *(str(int(b)) for b in bits)]) + "\n")
    logger.info("wrote_filters", path=str(path), count=len(entity_ids))


def write_filter_set(directory: Path, filters: FilterSet) -> tuple[Path, Path]:
    """Write ``attrfilters.txt`` and ``structfilters.txt`` into *directory*."""
    attr_path = directory / "attrfilters.txt"
    struct_path = directory / "structfilters.txt"
    write_filters(attr_path, filters.entity_ids, filters.attribute)
    write_filters(struct_path, filters.entity_ids, filters.structural)
    return attr_path, struct_path


def read_ground_truth(path: Path) -> list[dict[str, int]]:
    """Read a JSON list of ``{party_id: entity_id}`` rows."""
    with open(path, encoding="utf-8") as f:
        rows = json.load(f)
    if not isinstance(rows, list):
        raise ValueError(f"{path}: expected a JSON list of rows")
    return [{str(party): int(entity_id) for party, entity_id in row.items()} for row in rows]
