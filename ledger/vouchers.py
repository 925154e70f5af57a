from __future__ import annotations

import logging
import math
from datetime import date
from typing import Iterable, List, Optional, Sequence

from .db import Database
from .exceptions import VoucherValidationError
from .models import Voucher, VoucherEntry

logger = logging.getLogger(__name__)

BALANCE_TOLERANCE = 0.01
VOUCHER_TYPE_PREFIXES = {"Debit": "DBV", "Credit": "CRV", "Journal": "JRN"}


def validate_entries(entries: Sequence[VoucherEntry]) -> float:
    """Check double-entry rules and return the voucher total.

    Raises :class:`VoucherValidationError` when a rule is broken.
    """
    if not entries or len(entries) < 2:
        raise VoucherValidationError("Voucher must have at least 2 entries")
    total_debit = 0.0
    total_credit = 0.0
    for entry in entries:
        if not entry.account_id:
            raise VoucherValidationError("All entries must have an account selected")
        debit = float(entry.debit_amount or 0)
        credit = float(entry.credit_amount or 0)
        if not (math.isfinite(debit) and math.isfinite(credit)):
            raise VoucherValidationError("Amounts must be finite numbers")
        if debit < 0 or credit < 0:
            raise VoucherValidationError("Amounts cannot be negative")
        if debit > 0 and credit > 0:
            raise VoucherValidationError("An entry cannot have both debit and credit amounts")
        if debit == 0 and credit == 0:
            raise VoucherValidationError("Each entry must have either a debit or credit amount")
        total_debit += debit
        total_credit += credit
    # Compare in whole cents.
    if round(abs(total_debit - total_credit), 2) > BALANCE_TOLERANCE:
        raise VoucherValidationError(
            f"Voucher is not balanced. Debit: {total_debit:.2f}, Credit: {total_credit:.2f}"
        )
    return total_debit


def format_voucher_number(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year:04d}-{sequence:05d}"


def next_voucher_number(db: Database, prefix: str, year: int) -> str:
    """Next number after the highest numeric sequence for ``prefix`` and ``year``.

    Hand-entered numbers with a non-numeric tail are ignored. Must run inside
    the transaction that inserts the voucher.
    """
    stem = f"{prefix}-{year:04d}-"
    row = db.get_one(
        """
        SELECT MAX(CAST(substr(voucher_number, ?) AS INTEGER)) AS sequence
        FROM vouchers
        WHERE voucher_number GLOB ? AND substr(voucher_number, ?) NOT GLOB '*[^0-9]*'
        """,
        (len(stem) + 1, f"{stem}[0-9]*", len(stem) + 1),
    )
    sequence = (row["sequence"] or 0) + 1 if row else 1
    return format_voucher_number(prefix, year, sequence)


def insert_voucher(
    db: Database,
    voucher_number: str,
    voucher_type: str,
    voucher_date: str,
    narration: Optional[str],
    entries: Sequence[VoucherEntry],
    legacy_raw_id: Optional[int] = None,
) -> int:
    total = validate_entries(entries)
    result = db.run(
        """
        INSERT INTO vouchers (voucher_number, voucher_type, voucher_date, narration, total_amount, legacy_raw_id)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (voucher_number, voucher_type, voucher_date, narration, total, legacy_raw_id),
    )
    voucher_id = result.last_inserted_id
    _insert_entries(db, voucher_id, entries)
    return voucher_id


def _insert_entries(db: Database, voucher_id: int, entries: Sequence[VoucherEntry]) -> None:
    for entry in entries:
        db.run(
            """
            INSERT INTO voucher_entries (voucher_id, account_id, debit_amount, credit_amount, narration)
            VALUES (?, ?, ?, ?, ?)
            """,
            (voucher_id, entry.account_id, entry.debit_amount or 0, entry.credit_amount or 0, entry.narration),
        )


class VoucherService:
    """Manual voucher entry over the same tables the legacy poster writes."""

    def __init__(self, db: Database):
        self.db = db

    def create_voucher(
        self,
        voucher_type: str,
        voucher_date: str,
        entries: Iterable[VoucherEntry],
        narration: Optional[str] = None,
        voucher_number: Optional[str] = None,
    ) -> Voucher:
        if voucher_type not in VOUCHER_TYPE_PREFIXES:
            raise VoucherValidationError(f"Unknown voucher type: {voucher_type}")
        entries = list(entries)
        validate_entries(entries)

        def _create() -> int:
            number = voucher_number or next_voucher_number(
                self.db, VOUCHER_TYPE_PREFIXES[voucher_type], date.fromisoformat(voucher_date).year
            )
            return insert_voucher(self.db, number, voucher_type, voucher_date, narration, entries)

        voucher_id = self.db.transaction(_create)
        logger.info("Created %s voucher %s", voucher_type, voucher_id)
        return self.get_voucher(voucher_id)

    def get_voucher(self, voucher_id: int) -> Optional[Voucher]:
        row = self.db.get_one("SELECT * FROM vouchers WHERE voucher_id = ?", (voucher_id,))
        if row is None:
            return None
        entry_rows = self.db.get_all(
            "SELECT * FROM voucher_entries WHERE voucher_id = ? ORDER BY entry_id", (voucher_id,)
        )
        return Voucher(
            voucher_id=row["voucher_id"],
            voucher_number=row["voucher_number"],
            voucher_type=row["voucher_type"],
            voucher_date=row["voucher_date"],
            narration=row["narration"],
            total_amount=row["total_amount"],
            is_posted=bool(row["is_posted"]),
            legacy_raw_id=row["legacy_raw_id"],
            entries=[
                VoucherEntry(
                    entry_id=entry["entry_id"],
                    account_id=entry["account_id"],
                    debit_amount=entry["debit_amount"] or 0.0,
                    credit_amount=entry["credit_amount"] or 0.0,
                    narration=entry["narration"],
                )
                for entry in entry_rows
            ],
        )

    def list_vouchers(self, legacy_only: bool = False) -> List[Voucher]:
        query = "SELECT voucher_id FROM vouchers"
        if legacy_only:
            query += " WHERE legacy_raw_id IS NOT NULL"
        query += " ORDER BY voucher_date DESC, voucher_id DESC"
        return [self.get_voucher(row["voucher_id"]) for row in self.db.get_all(query)]

    def update_voucher(
        self,
        voucher_id: int,
        voucher_date: str,
        entries: Iterable[VoucherEntry],
        narration: Optional[str] = None,
    ) -> Optional[Voucher]:
        """Rewrite the header and replace every entry; type and number stay."""
        entries = list(entries)
        total = validate_entries(entries)

        def _update() -> int:
            changed = self.db.run(
                """
                UPDATE vouchers SET voucher_date = ?, narration = ?, total_amount = ?, updated_at = CURRENT_TIMESTAMP
                WHERE voucher_id = ?
                """,
                (voucher_date, narration, total, voucher_id),
            ).changes
            if not changed:
                return 0
            self.db.run("DELETE FROM voucher_entries WHERE voucher_id = ?", (voucher_id,))
            _insert_entries(self.db, voucher_id, entries)
            return changed

        if not self.db.transaction(_update):
            return None
        logger.info("Updated voucher %s", voucher_id)
        return self.get_voucher(voucher_id)

    def delete_voucher(self, voucher_id: int) -> bool:
        row = self.db.get_one("SELECT legacy_raw_id FROM vouchers WHERE voucher_id = ?", (voucher_id,))
        if row and row["legacy_raw_id"] is not None:
            raise VoucherValidationError("Vouchers imported from legacy data cannot be deleted")

        def _delete() -> int:
            self.db.run("DELETE FROM voucher_entries WHERE voucher_id = ?", (voucher_id,))
            return self.db.run("DELETE FROM vouchers WHERE voucher_id = ?", (voucher_id,)).changes

        return self.db.transaction(_delete) > 0


__all__ = [
    "VoucherService",
    "validate_entries",
    "next_voucher_number",
    "format_voucher_number",
    "insert_voucher",
    "BALANCE_TOLERANCE",
    "VOUCHER_TYPE_PREFIXES",
]
