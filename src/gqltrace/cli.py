# src/gqltrace/cli.py
"""gqltrace Command Line Interface.

Local tooling around a trace store: create the schema, load a report from
a JSON file, export stored records and show row counts.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

import typer
from pydantic import ValidationError

from gqltrace import __version__
from gqltrace.contracts.errors import ReportWriteError
from gqltrace.contracts.report import Report
from gqltrace.core.config import GqlTraceSettings, StoreSettings, load_settings
from gqltrace.core.logging import configure_logging

__all__ = ["app"]

app = typer.Typer(
    name="gqltrace",
    help="gqltrace: normalized storage for GraphQL execution traces.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"gqltrace version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """gqltrace: normalized storage for GraphQL execution traces."""


def _resolve_settings(settings: str | None, database: str | None) -> GqlTraceSettings:
    """Build settings from an optional YAML file and an optional URL override.

    Exits with code 1 on unreadable or invalid configuration.
    """
    try:
        resolved = load_settings(Path(settings).expanduser()) if settings else GqlTraceSettings()
        if database:
            resolved = resolved.model_copy(update={"store": StoreSettings(url=database, echo=resolved.store.echo)})
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None
    configure_logging(json_output=resolved.logging.json_output, level=resolved.logging.level)
    return resolved


_DATABASE_OPTION = typer.Option(
    None,
    "--database",
    "-d",
    help="SQLAlchemy database URL (overrides the settings file).",
)
_SETTINGS_OPTION = typer.Option(
    None,
    "--settings",
    "-s",
    help="Path to settings YAML file.",
)


@app.command("init-db")
def init_db(
    database: str | None = _DATABASE_OPTION,
    settings: str | None = _SETTINGS_OPTION,
) -> None:
    """Create the trace store schema if it does not exist."""
    from gqltrace.core.store import TraceDB

    resolved = _resolve_settings(settings, database)
    with TraceDB.from_url(resolved.store.url, echo=resolved.store.echo):
        pass
    typer.echo(f"Trace store ready: {resolved.store.url}")


@app.command()
def ingest(
    report_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="JSON report file."),
    database: str | None = _DATABASE_OPTION,
    settings: str | None = _SETTINGS_OPTION,
) -> None:
    """Write a JSON report file into the trace store."""
    from gqltrace.core.ingest import TraceStore

    resolved = _resolve_settings(settings, database)
    try:
        report = Report.from_dict(json.loads(report_file.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        typer.echo(f"Error: cannot read report {report_file}: {e}", err=True)
        raise typer.Exit(1) from None

    with TraceStore.from_settings(resolved) as store:
        try:
            store.write_report(report)
        except ReportWriteError as e:
            for failure in e.failures:
                typer.echo(f"  - trace {failure.trace_index}: {failure.stage.value}: {failure.cause}", err=True)
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None
    typer.echo(f"Wrote {len(report.traces)} trace(s)")


@app.command()
def export(
    database: str | None = _DATABASE_OPTION,
    settings: str | None = _SETTINGS_OPTION,
    output_format: Literal["json", "jsonl"] = typer.Option(
        "jsonl",
        "--format",
        "-f",
        help="Output format: 'jsonl' (one record per line) or 'json' (single array).",
    ),
) -> None:
    """Export every stored record."""
    from gqltrace.core.store import StorageGateway, TraceDB, TraceExporter

    resolved = _resolve_settings(settings, database)
    with TraceDB.from_url(resolved.store.url) as db:
        exporter = TraceExporter(StorageGateway(db))
        if output_format == "json":
            typer.echo(json.dumps(list(exporter.export()), indent=2, sort_keys=True))
        else:
            for line in exporter.export_jsonl():
                typer.echo(line)


@app.command()
def stats(
    database: str | None = _DATABASE_OPTION,
    settings: str | None = _SETTINGS_OPTION,
) -> None:
    """Show row counts per relation."""
    from gqltrace.core.store import StorageGateway, TraceDB

    resolved = _resolve_settings(settings, database)
    with TraceDB.from_url(resolved.store.url) as db:
        for table, count in StorageGateway(db).count_rows().items():
            typer.echo(f"{table}: {count}")


if __name__ == "__main__":
    app()
