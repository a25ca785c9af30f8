from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from ledger_indexer.pipeline.tailer import TailerStats


def _format_version(version: Optional[int]) -> str:
    return f"{version:,}" if version is not None else "N/A"


def _format_timestamp(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value is not None else "N/A"


def print_status(rows: Sequence[Sequence[Any]], console: Optional[Console] = None) -> None:
    """
    Render the stored resume cursors as a rich table.

    `rows` are `(processor, last_success_version, last_updated)` tuples, as
    returned by `list_processor_status`.
    """
    console = console or Console()

    if not rows:
        console.print("[yellow]No processor has recorded progress yet.[/yellow]")
        return

    table = Table(title="Processor Status", box=box.ROUNDED)
    table.add_column("Processor", style="cyan", no_wrap=True)
    table.add_column("Last Success Version", justify="right", style="magenta")
    table.add_column("Last Updated (UTC)", justify="right", style="green")

    for processor, last_success_version, last_updated in rows:
        table.add_row(
            str(processor),
            _format_version(last_success_version),
            _format_timestamp(last_updated),
        )

    console.print(table)


def print_run_summary(
    processor_name: str, stats: TailerStats, console: Optional[Console] = None
) -> None:
    """Render the totals of a finished (bounded) run."""
    console = console or Console()

    table = Table(title=f"Run Summary: {processor_name}", box=box.ROUNDED)
    table.add_column("Batches", justify="right", style="blue")
    table.add_column("Versions", justify="right", style="magenta")
    table.add_column("Records Written", justify="right", style="yellow")
    table.add_column("Last Success Version", justify="right", style="cyan")
    table.add_column("TPS\n[dim](10s window)[/dim]", justify="right", style="bold green")

    table.add_row(
        f"{stats.batches:,}",
        f"{stats.versions_processed:,}",
        f"{stats.records_written:,}",
        _format_version(stats.last_success_version),
        f"{stats.tps:,.2f}",
    )

    console.print(table)


__all__ = ["print_run_summary", "print_status"]
