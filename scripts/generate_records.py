"""
Sample record generator for sink-binder.

Emits deterministic pseudo-random Kafka Connect JSON lines (struct key, struct
value, a share of tombstones and `deleted=true` rows) for `sink-binder explain`
and `sink-binder load`.
"""

from __future__ import annotations

import json
import random
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, TextIO

import typer

app = typer.Typer(help="Generate sample Connect JSON records.")

KEY_SCHEMA: Dict[str, Any] = {
    "type": "struct",
    "name": "orders.Key",
    "optional": False,
    "fields": [
        {"field": "id", "type": "int64", "optional": False},
        {"field": "region", "type": "string", "optional": False},
    ],
}

VALUE_SCHEMA: Dict[str, Any] = {
    "type": "struct",
    "name": "orders.Value",
    "optional": False,
    "fields": [
        {"field": "id", "type": "int64", "optional": False},
        {"field": "region", "type": "string", "optional": False},
        {"field": "name", "type": "string", "optional": True},
        {"field": "amount", "type": "float64", "optional": True},
        {"field": "tags", "type": "array", "items": {"type": "string"}, "optional": True},
        {"field": "deleted", "type": "boolean", "optional": False},
    ],
}

REGIONS = ["eu", "us", "apac"]
NAMES = ["alpha", "beta", "gamma", "delta"]


def _generate(rows: int, seed: int, tombstone_ratio: float, topic: str) -> Iterator[Dict[str, Any]]:
    rng = random.Random(seed)
    for offset in range(rows):
        key = {"id": rng.randint(1, 1_000), "region": rng.choice(REGIONS)}
        record: Dict[str, Any] = {
            "topic": topic,
            "partition": rng.randint(0, 3),
            "offset": offset,
            "key": {"schema": KEY_SCHEMA, "payload": key},
        }
        if rng.random() < tombstone_ratio:
            record["value"] = None
        else:
            record["value"] = {
                "schema": VALUE_SCHEMA,
                "payload": {
                    **key,
                    "name": rng.choice(NAMES),
                    "amount": round(rng.uniform(1, 10_000), 2),
                    "tags": rng.sample(NAMES, k=rng.randint(0, 2)),
                    "deleted": rng.random() < tombstone_ratio,
                },
            }
        yield record


def _write(out: TextIO, rows: int, seed: int, tombstone_ratio: float, topic: str) -> None:
    for record in _generate(rows, seed, tombstone_ratio, topic):
        out.write(json.dumps(record) + "\n")


@app.command()
def main(
    rows: int = typer.Option(100, "--rows", "-r", help="Number of records to generate."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    tombstone_ratio: float = typer.Option(0.1, "--tombstones", help="Share of tombstones / deleted rows."),
    topic: str = typer.Option("orders", "--topic", help="Topic name written into each record."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output file (stdout when omitted)."),
) -> None:
    """
    Generate Connect JSON lines.
    """
    if output is None:
        _write(sys.stdout, rows, seed, tombstone_ratio, topic)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as f:
        _write(f, rows, seed, tombstone_ratio, topic)
    typer.echo(f"Wrote {rows:,} records -> {output}", err=True)


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
