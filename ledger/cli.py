from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from .config import get_settings
from .db import init_db
from .export import export_csv
from .logging_config import configure_logging
from .service import MigrationService

app = typer.Typer(help="Legacy ledger migration CLI")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level")) -> None:
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)


def _echo_result(result: dict) -> None:
    typer.echo(json.dumps(result, indent=2, default=str))
    if not result.get("success", True):
        raise typer.Exit(code=1)


@app.command()
def init() -> None:
    """Create the schema at LEDGER_DB_URL and seed the default chart of accounts."""
    db = init_db()
    accounts = db.get_one("SELECT COUNT(*) AS count FROM accounts")["count"]
    typer.echo(f"Database ready at {db.path} ({accounts} accounts).")


@app.command()
def scan() -> None:
    """List importable files in the legacy-data directory."""
    service = MigrationService()
    files = service.scan_legacy_files()
    if not files:
        typer.echo(f"No legacy files found in {service.settings.legacy_dir}")
        return
    for item in files:
        typer.echo(f"- {item.name} [{item.source_type}] {item.size} bytes, modified {item.modified:%Y-%m-%d %H:%M}")


@app.command("import-file")
def import_file(
    path: Path = typer.Argument(..., exists=True, dir_okay=False),
    source_type: Optional[str] = typer.Option(None, "--type", help="CSV or JSON; inferred from the extension"),
) -> None:
    """Import one legacy file as a new batch."""
    _echo_result(MigrationService().import_batch(path, source_type))


@app.command()
def normalize(batch_id: int = typer.Argument(...)) -> None:
    """Detect date, amount, accounts and narration for raw records."""
    _echo_result(MigrationService().normalize_records(batch_id))


@app.command()
def validate(batch_id: int = typer.Argument(...)) -> None:
    """Check normalized records and map their accounts."""
    _echo_result(MigrationService().validate_batch(batch_id))


@app.command()
def post(batch_id: int = typer.Argument(...)) -> None:
    """Create vouchers for validated records."""
    _echo_result(MigrationService().post_batch(batch_id))


@app.command()
def run(
    path: Path = typer.Argument(..., exists=True, dir_okay=False),
    source_type: Optional[str] = typer.Option(None, "--type"),
) -> None:
    """Import, normalize, validate and post a file in one go."""
    _echo_result(MigrationService().run_pipeline(path, source_type))


@app.command()
def batches() -> None:
    """Display import batches, newest first."""
    service = MigrationService()
    typer.echo("Batches:")
    for batch in service.get_batches():
        typer.echo(
            f"- {batch.batch_id}: {batch.source_file or 'manual'} ({batch.source_type}) "
            f"{batch.status} total={batch.total_records} processed={batch.processed_records} "
            f"failed={batch.failed_records}"
        )


@app.command()
def records(
    batch_id: int = typer.Argument(...),
    status: Optional[str] = typer.Option(None, help="Only show records with this status"),
) -> None:
    """Show the raw records of a batch with their detection results."""
    service = MigrationService()
    for record in service.get_raw_records(batch_id):
        if status and record.status != status:
            continue
        typer.echo(
            f"- {record.raw_id} [{record.status}] date={record.detected_date} amount={record.detected_amount} "
            f"dr={record.detected_debit_account} cr={record.detected_credit_account} "
            f"confidence={record.confidence_score:.3f}"
        )
        for error in record.validation_errors:
            typer.echo(f"    error: {error}")
        for warning in record.warnings:
            typer.echo(f"    warning: {warning}")


@app.command()
def audit(batch_id: int = typer.Argument(...)) -> None:
    """Print the audit trail of a batch."""
    service = MigrationService()
    for entry in service.get_audit_log(batch_id):
        voucher = f" voucher={entry.final_voucher_id}" if entry.final_voucher_id else ""
        typer.echo(f"{entry.created_at} {entry.action_taken} raw={entry.raw_id}{voucher}: {entry.details}")


@app.command("rule-add")
def rule_add(
    pattern: str = typer.Argument(..., help="Case-insensitive text to look for"),
    account_id: int = typer.Argument(...),
    priority: int = typer.Option(0),
    auto_apply: bool = typer.Option(True, "--auto-apply/--manual"),
) -> None:
    """Add a mapping rule from legacy text to an account."""
    _echo_result(MigrationService().create_mapping_rule(pattern, account_id, priority, auto_apply))


@app.command()
def rules() -> None:
    """List mapping rules in the order they are applied."""
    for rule in MigrationService().get_mapping_rules():
        flag = "auto" if rule.auto_apply else "manual"
        typer.echo(f"- {rule.rule_id}: '{rule.legacy_text_pattern}' -> {rule.account_name} (p={rule.priority}, {flag})")


@app.command()
def export(out_dir: Optional[Path] = typer.Option(None, help="Override export directory")) -> None:
    """Export accounts, vouchers and voucher entries as CSV."""
    settings = get_settings()
    written = export_csv(init_db(), out_dir or settings.export_dir)
    for name, path in written.items():
        typer.echo(f"{name}: {path}")


if __name__ == "__main__":
    app()
