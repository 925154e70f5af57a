from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, List

from .db import Database

EXPORT_QUERIES = {
    "accounts.csv": "SELECT * FROM accounts ORDER BY account_code",
    "vouchers.csv": "SELECT * FROM vouchers ORDER BY voucher_date DESC, voucher_id DESC",
    "voucher_entries.csv": """
        SELECT ve.*, a.account_name, v.voucher_number, v.voucher_date
        FROM voucher_entries ve
        JOIN accounts a ON ve.account_id = a.account_id
        JOIN vouchers v ON ve.voucher_id = v.voucher_id
        ORDER BY v.voucher_date DESC, ve.voucher_id, ve.entry_id
    """,
}


def _write_rows(path: Path, rows: List[Dict]) -> None:
    with open(path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        for row in rows:
            writer.writerow({key: "" if value is None else value for key, value in row.items()})


def export_csv(db: Database, export_dir: Path) -> Dict[str, Path]:
    """Write accounts, vouchers and entries as CSV; empty tables are skipped."""
    export_dir = Path(export_dir)
    export_dir.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}
    for filename, query in EXPORT_QUERIES.items():
        rows = db.get_all(query)
        if not rows:
            continue
        target = export_dir / filename
        _write_rows(target, rows)
        written[filename] = target
    return written


__all__ = ["export_csv"]
