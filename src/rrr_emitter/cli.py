from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Iterator, Optional

import typer
from loguru import logger

from .buffer import BulkBuffer
from .emitter import RRREmitter
from .index import DEFAULT_INDEX_PREFIX, index_name as _index_name
from .errors import ConfigurationInvalid
from .models import EmitterConfig, FlushOutcome
from .preprocess import preprocess_record

app = typer.Typer(help="rrr_emitter operational CLI")

# ---------------------------
# Common options
# ---------------------------


def prefix_opt() -> str:
    return typer.Option(
        DEFAULT_INDEX_PREFIX,
        "--prefix",
        envvar="SWS_OPENOBSERVE_INDEX_PREFIX",
        help="Index name prefix",
    )


def iter_ndjson(path: Path) -> Iterator[dict]:
    with path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"{path}:{lineno}: skipping invalid JSON ({e.msg})")


# ---------------------------
# Commands
# ---------------------------


@app.command("index-name")
def index_name(
    timestamp: str = typer.Argument(..., help="ISO-8601 timestamp or epoch milliseconds"),
    prefix: str = prefix_opt(),
):
    """Print the destination index for a record timestamp."""
    ts = int(timestamp) if timestamp.isdigit() else timestamp
    try:
        typer.echo(_index_name(prefix, ts))
    except (TypeError, ValueError) as e:
        logger.error(f"Invalid timestamp {timestamp!r}: {e}")
        raise typer.Exit(code=1)


@app.command("bulk-body")
def bulk_body(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="NDJSON file of records"),
    prefix: str = prefix_opt(),
):
    """Print the NDJSON bulk body that would be sent for the given records."""
    buf = BulkBuffer(prefix)
    for rec in iter_ndjson(path):
        try:
            buf.append(preprocess_record(rec))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"skipping record: {type(e).__name__}: {e}")
    sys.stdout.write(buf.body)


@app.command("ship")
def ship(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="NDJSON file of records"),
    endpoint: str = typer.Option(..., "--endpoint", envvar="SWS_OPENOBSERVE", help="Sink base URL"),
    prefix: str = prefix_opt(),
    username: Optional[str] = typer.Option(None, "--username", envvar="SWS_OPENOBSERVE_USERNAME"),
    password: Optional[str] = typer.Option(None, "--password", envvar="SWS_OPENOBSERVE_PASSWORD"),
):
    """Ship records from an NDJSON file to the sink's bulk endpoint."""
    try:
        cfg = EmitterConfig.require(
            {
                "endpointUrl": endpoint,
                "indexPrefix": prefix,
                "username": username,
                "password": password,
            }
        )
    except ConfigurationInvalid as e:
        logger.error(f"Emitter disabled: {e}")
        raise typer.Exit(code=1)

    async def _run() -> dict:
        outcomes: list[FlushOutcome] = []
        emitter = RRREmitter("cli", on_complete=outcomes.append)
        emitter.initialize(cfg)

        records = 0
        async with emitter:
            for rec in iter_ndjson(path):
                emitter.process_record(rec)
                records += 1
                emitter.tick()
                await asyncio.sleep(0)

        h = emitter.health()
        return {
            "records": records,
            "flushes": h.flushes,
            "records_sent": h.records_sent,
            "status_errors": h.status_errors,
            "transport_errors": h.transport_errors,
            "state": h.state,
            "outcomes": [o.outcome for o in outcomes],
        }

    summary = asyncio.run(_run())
    if summary["state"] == "enabled" and summary["status_errors"] == 0:
        logger.success(f"Shipped {summary['records_sent']} records in {summary['flushes']} flushes")
    else:
        logger.warning(f"Shipping finished with errors (state={summary['state']})")
    typer.echo(json.dumps(summary, indent=2))


if __name__ == "__main__":
    app()
