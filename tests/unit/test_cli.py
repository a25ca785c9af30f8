from __future__ import annotations

from datetime import datetime

from typer.testing import CliRunner

from ledger_indexer import main as cli
from ledger_indexer.pipeline.tailer import TailerStats
from ledger_indexer.reporter import print_run_summary, print_status

runner = CliRunner()


def test_processors_command_lists_registry() -> None:
    result = runner.invoke(cli.app, ["processors"])

    assert result.exit_code == 0
    assert "marketplace_processor" in result.stdout


def test_info_command_shows_effective_settings() -> None:
    result = runner.invoke(cli.app, ["info"])

    assert result.exit_code == 0
    assert "processor=" in result.stdout
    assert "lookback=" in result.stdout


def test_status_table_renders_rows(capsys) -> None:
    print_status([("marketplace_processor", 123_456, datetime(2024, 5, 1, 12, 0, 0))])

    out = capsys.readouterr().out
    assert "marketplace_processor" in out
    assert "123,456" in out


def test_status_table_handles_empty_store(capsys) -> None:
    print_status([])

    assert "No processor has recorded progress yet" in capsys.readouterr().out


def test_run_summary_renders_totals(capsys) -> None:
    stats = TailerStats(versions_processed=5_000, records_written=12, batches=10, last_success_version=4_999)

    print_run_summary("marketplace_processor", stats)

    out = capsys.readouterr().out
    assert "5,000" in out
    assert "4,999" in out
