#!/usr/bin/env python3
"""CLI script to encode party data and run multi-party entity resolution locally."""

from __future__ import annotations

import json
from pathlib import Path

import structlog
import typer

from bloomlink.config import get_settings
from bloomlink.encoding.encoder import encode_party
from bloomlink.io import read_ground_truth, read_party, write_filter_set
from bloomlink.pipeline import resolve_parties
from bloomlink.serialization import (
    common_entities_to_json,
    match_map_to_json,
    merged_buckets_to_json,
)
from bloomlink.validation import compute_common_entity_metrics, generate_validation_report

logger = structlog.get_logger(__name__)
app = typer.Typer()


@app.command()
def encode(
    data_dir: Path = typer.Argument(..., help="Directory with entities.txt and edges.txt"),
    out_dir: Path = typer.Option(Path("."), "--out-dir", help="Where to write the filter files"),
) -> None:
    """Write the attribute and structural filters of one party."""
    settings = get_settings()
    entities = read_party(data_dir)
    filters = encode_party(
        entities,
        filter_size=settings.filter_size,
        hash_count=settings.hash_count,
        normalize=settings.normalize_attributes,
        max_workers=settings.max_workers,
    )
    attr_path, struct_path = write_filter_set(out_dir, filters)
    logger.info("filters_written", attribute=str(attr_path), structural=str(struct_path))


@app.command()
def resolve(
    party_dirs: list[Path] = typer.Argument(..., help="One data directory per party, in ring order"),
    output: Path | None = typer.Option(None, "--output", help="Write the JSON result here"),
    quorum: int | None = typer.Option(None, "--quorum", help="Minimum parties per candidate bucket"),
    threshold: float | None = typer.Option(None, "--threshold", help="Dice similarity threshold"),
    include_buckets: bool = typer.Option(
        False, "--include-buckets", help="Include the merged bucket table in the output"
    ),
    truth: Path | None = typer.Option(
        None, "--truth", help="JSON list of {party: id} rows to score the result against"
    ),
) -> None:
    """Resolve the entities common to every party."""
    overrides: dict[str, object] = {}
    if quorum is not None:
        overrides["bucket_quorum"] = quorum
    if threshold is not None:
        overrides["similarity_threshold"] = threshold
    settings = get_settings().model_copy(update=overrides)

    parties = {d.name: read_party(d) for d in party_dirs}
    result = resolve_parties(parties, settings)

    payload = {
        "chain": result.chain,
        "common_entities": common_entities_to_json(result.common_entities),
        "pairwise": {p: match_map_to_json(m) for p, m in result.pairwise.items()},
        "diagnostics": result.diagnostics,
        "stats": result.stats,
    }
    if include_buckets:
        payload["merged_buckets"] = merged_buckets_to_json(result.merged_buckets)
    if truth is not None:
        metrics = compute_common_entity_metrics(result.common_entities, read_ground_truth(truth))
        payload["validation"] = metrics
        logger.info("validation_complete", **metrics)
        typer.echo(generate_validation_report(metrics), err=True)

    text = json.dumps(payload, indent=2)
    if output:
        output.write_text(text)
        logger.info("result_written", path=str(output), **result.stats)
    else:
        typer.echo(text)


if __name__ == "__main__":
    app()
