"""Generate sample legacy CSV and JSON exports for the migration pipeline."""
from __future__ import annotations

import csv
import json
from pathlib import Path


CSV_ROWS = [
    {
        "Date": "03/15/2024",
        "amount": "5,000.00",
        "paid_to": "Rent Expense",
        "received_from": "Bank Account",
        "notes": "Q1 office rent",
    },
    {
        "Date": "3/18/2024",
        "amount": "$ 142.75",
        "paid_to": "Utilities Expence",
        "received_from": "Cash",
        "notes": "Electricity",
    },
    {
        "Date": "",
        "amount": "80",
        "paid_to": "Stationery",
        "received_from": "Petty Cash",
        "notes": "Pens and paper",
    },
]

JSON_ROWS = [
    {"voucher_date": "2024-04-02", "value": 1200, "dr_account": "Bank Account", "cr_account": "Sales Revenue"},
    {"transaction_date": "02-04-2024", "total": "450", "Account": "Bank Charges", "description": "April fees"},
    {"txn_date": "2024/04/05", "amount": "0", "from_account": "Cash", "to_account": "Drawings"},
]


def write_csv(target: Path) -> None:
    with open(target, "w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=list(CSV_ROWS[0].keys()))
        writer.writeheader()
        writer.writerows(CSV_ROWS)


def write_json(target: Path) -> None:
    target.write_text(json.dumps(JSON_ROWS, indent=2), encoding="utf-8")


def main() -> None:
    target_dir = Path(__file__).resolve().parent.parent / "legacy-data"
    target_dir.mkdir(parents=True, exist_ok=True)
    write_csv(target_dir / "cashbook_2024.csv")
    write_json(target_dir / "bank_export_2024.json")
    print(f"Generated sample files in {target_dir}")


if __name__ == "__main__":
    main()
