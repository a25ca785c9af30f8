from __future__ import annotations

import sys
from typing import Optional

import typer

from ledger_indexer.config import get_settings
from ledger_indexer.domain.errors import IndexerError
from ledger_indexer.infrastructure.db_factory import get_sync_connection, get_sync_pool
from ledger_indexer.infrastructure.progress import list_processor_status
from ledger_indexer.pipeline.fetcher import NodeTransactionSource, TransactionFetcher
from ledger_indexer.pipeline.tailer import Tailer
from ledger_indexer.processors import available_processors, resolve_processor
from ledger_indexer.reporter import print_run_summary, print_status
from ledger_indexer.utils.logging import configure_logging

app = typer.Typer(help="Ledger Indexer CLI.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"node={settings.node_url} processor={settings.processor_name} "
        f"tasks={settings.processor_tasks} batch={settings.batch_size} "
        f"lookback={settings.gap_lookback_versions}"
    )


@app.command()
def processors() -> None:
    """
    List available processors.
    """
    typer.echo("Available processors: " + ", ".join(available_processors()))


@app.command()
def status() -> None:
    """
    Show the stored resume cursor of every processor.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    with get_sync_connection() as conn:
        rows = list_processor_status(conn)
    print_status(rows)


@app.command()
def run(
    processor: Optional[str] = typer.Option(
        None,
        "--processor",
        "-p",
        help="Processor to run (default from settings).",
    ),
    starting_version: Optional[int] = typer.Option(
        None,
        "--starting-version",
        help="Ignore stored progress and start here.",
    ),
    until_version: Optional[int] = typer.Option(
        None,
        "--until-version",
        help="Stop once every version up to this one is committed.",
    ),
    tasks: Optional[int] = typer.Option(
        None,
        "--tasks",
        "-t",
        help="Override number of concurrent processing workers.",
    ),
) -> None:
    """
    Tail the ledger with one processor and persist its rows.
    """
    overrides = {
        key: value
        for key, value in {
            "processor_name": processor,
            "starting_version": starting_version,
            "processor_tasks": tasks,
        }.items()
        if value is not None
    }
    settings = get_settings().model_copy(update=overrides)
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    pool = get_sync_pool()
    source = NodeTransactionSource(settings.node_url, timeout_s=settings.fetch_timeout_seconds)
    fetcher = TransactionFetcher(
        source,
        batch_size=settings.batch_size,
        poll_interval_seconds=settings.fetch_poll_interval_seconds,
    )
    try:
        tailer = Tailer(
            resolve_processor(settings.processor_name, pool, settings),
            fetcher,
            pool,
            settings,
        )
        typer.echo(
            f"Running processor='{settings.processor_name}' "
            f"(tasks={settings.processor_tasks}, batch={settings.batch_size})."
        )
        tailer.run_migrations()
        stats = tailer.run(until_version=until_version)
    finally:
        source.close()
    print_run_summary(settings.processor_name, stats)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
    except IndexerError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
