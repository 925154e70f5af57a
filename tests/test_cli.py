import logging

import pytest
from typer.testing import CliRunner

from ledger.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def detach_log_handlers():
    yield
    logger = logging.getLogger("ledger")
    for handler in list(logger.handlers):
        if getattr(handler, "_ledger_handler", False):
            logger.removeHandler(handler)


def test_init_and_scan_empty(tmp_path):
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    assert "Database ready at" in result.output
    assert "test.db" in result.output
    assert "(30 accounts)" in result.output

    result = runner.invoke(app, ["scan"])
    assert result.exit_code == 0
    assert "No legacy files found" in result.output


def test_run_posts_and_exports(legacy_file, tmp_path):
    path = legacy_file(
        "ledger.csv",
        "date,amount,debit_account,credit_account,memo\n2024-03-15,5000,Rent Expense,Bank Account,March rent\n",
    )

    result = runner.invoke(app, ["run", str(path)])
    assert result.exit_code == 0, result.output
    assert '"posted": 1' in result.output
    assert "LGC-" in result.output

    result = runner.invoke(app, ["batches"])
    assert "ledger.csv (CSV) posted total=1 processed=1 failed=0" in result.output

    result = runner.invoke(app, ["audit", "1"])
    assert "RECORD_POSTED" in result.output

    out_dir = tmp_path / "out"
    result = runner.invoke(app, ["export", "--out-dir", str(out_dir)])
    assert result.exit_code == 0
    assert (out_dir / "vouchers.csv").read_text(encoding="utf-8").count("LGC-") == 1
    assert (out_dir / "accounts.csv").exists()


def test_stage_commands_and_record_listing(legacy_file):
    path = legacy_file("rows.csv", "date,amount,Account\n2024-01-02,15,Cash\n")

    assert runner.invoke(app, ["import-file", str(path)]).exit_code == 0
    assert runner.invoke(app, ["normalize", "1"]).exit_code == 0
    assert runner.invoke(app, ["validate", "1"]).exit_code == 0
    result = runner.invoke(app, ["post", "1"])
    assert result.exit_code == 0
    assert '"failed": 1' in result.output

    result = runner.invoke(app, ["records", "1", "--status", "failed"])
    assert "error: Account mapping incomplete" in result.output


def test_failures_exit_non_zero(legacy_file):
    result = runner.invoke(app, ["normalize", "42"])
    assert result.exit_code == 1
    assert "Batch 42 not found" in result.output

    path = legacy_file("notes.txt", "hello")
    result = runner.invoke(app, ["import-file", str(path)])
    assert result.exit_code == 1
    assert "Unsupported file type" in result.output


def test_rules_commands():
    result = runner.invoke(app, ["rule-add", "stationery", "25", "--priority", "2"])
    assert result.exit_code == 0

    result = runner.invoke(app, ["rules"])
    assert "'stationery' -> Office Supplies (p=2, auto)" in result.output

    result = runner.invoke(app, ["rule-add", "ghost", "999"])
    assert result.exit_code == 1
