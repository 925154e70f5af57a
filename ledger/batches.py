from __future__ import annotations

from typing import List, Optional, Sequence

from .db import Database
from .exceptions import BatchNotFoundError
from .models import ImportBatch, RawRecord, advance_status, dump_list


class BatchRepository:
    def __init__(self, db: Database):
        self.db = db

    def list(self) -> List[ImportBatch]:
        rows = self.db.get_all("SELECT * FROM legacy_import_batches ORDER BY imported_at DESC, batch_id DESC")
        return [ImportBatch.from_row(row) for row in rows]

    def get(self, batch_id: int) -> Optional[ImportBatch]:
        row = self.db.get_one("SELECT * FROM legacy_import_batches WHERE batch_id = ?", (batch_id,))
        return ImportBatch.from_row(row) if row else None

    def require(self, batch_id: int) -> ImportBatch:
        batch = self.get(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    def records(self, batch_id: int, statuses: Optional[Sequence[str]] = None) -> List[RawRecord]:
        query = "SELECT * FROM legacy_raw_records WHERE batch_id = ?"
        params: list = [batch_id]
        if statuses:
            query += f" AND status IN ({', '.join('?' for _ in statuses)})"
            params.extend(statuses)
        query += " ORDER BY raw_id"
        return [RawRecord.from_row(row) for row in self.db.get_all(query, params)]

    def mark_status(self, batch_id: int, status: str) -> str:
        batch = self.require(batch_id)
        new_status = advance_status(batch.status, status)
        if new_status != batch.status:
            self.db.run("UPDATE legacy_import_batches SET status = ? WHERE batch_id = ?", (new_status, batch_id))
        return new_status

    def record_progress(
        self,
        batch_id: int,
        status: str,
        processed: int,
        failed: int,
        completed: bool = False,
        touched: bool = True,
    ) -> str:
        """Advance the batch status and store the stage counts.

        With ``touched=False`` (the stage selected no records) the counts of
        the previous run are left in place.
        """
        batch = self.require(batch_id)
        new_status = advance_status(batch.status, status)
        query = "UPDATE legacy_import_batches SET status = ?"
        params: list = [new_status]
        if touched:
            query += ", processed_records = ?, failed_records = ?"
            params.extend([processed, failed])
        if completed:
            query += ", completed_at = CURRENT_TIMESTAMP"
        query += " WHERE batch_id = ?"
        params.append(batch_id)
        self.db.run(query, params)
        return new_status

    def fail_record(self, raw_id: int, errors: List[str]) -> None:
        self.db.run(
            "UPDATE legacy_raw_records SET status = 'failed', validation_errors = ? WHERE raw_id = ?",
            (dump_list(errors), raw_id),
        )


__all__ = ["BatchRepository"]
