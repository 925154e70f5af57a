from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional

from .accounts import AccountRegistry
from .audit import AuditLogger
from .batches import BatchRepository
from .db import Database
from .exceptions import AccountMappingError
from .mapping_rules import MappingRuleRegistry
from .matching import DEFAULT_THRESHOLD, AccountMatcher, AccountResolver
from .models import RawRecord, VoucherEntry
from .vouchers import insert_voucher, next_voucher_number

logger = logging.getLogger(__name__)

DEFAULT_NARRATION = "Imported from legacy data"
ERR_MAPPING_INCOMPLETE = "Account mapping incomplete"


@dataclass
class PostedVoucher:
    raw_id: int
    voucher_id: int
    voucher_number: str


@dataclass
class PostSummary:
    batch_id: int
    posted: int
    failed: int
    vouchers: List[PostedVoucher] = field(default_factory=list)


class VoucherPoster:
    """Turns ``validated`` records into two-line Journal vouchers.

    Accounts are resolved again with the rules in force at posting time. Each
    record is posted in its own transaction: voucher number, header, both
    entries, the record status and its audit entry commit together.
    """

    def __init__(
        self,
        db: Database,
        audit: AuditLogger,
        prefix: str = "LGC",
        matcher: Optional[AccountMatcher] = None,
        threshold: float = DEFAULT_THRESHOLD,
        today: Callable[[], date] = date.today,
    ):
        self.db = db
        self.audit = audit
        self.prefix = prefix
        self.batches = BatchRepository(db)
        self.accounts = AccountRegistry(db)
        self.rules = MappingRuleRegistry(db)
        self.matcher = matcher
        self.threshold = threshold
        self.today = today

    def _resolve_pair(self, record: RawRecord, resolver: AccountResolver) -> tuple[int, int]:
        debit_id = resolver.resolve(record.detected_debit_account)
        credit_id = resolver.resolve(record.detected_credit_account)
        if debit_id is None or credit_id is None:
            raise AccountMappingError(ERR_MAPPING_INCOMPLETE)
        return debit_id, credit_id

    def _post_record(self, record: RawRecord, debit_id: int, credit_id: int) -> PostedVoucher:
        amount = record.detected_amount
        narration = record.detected_narration or DEFAULT_NARRATION
        entries = [
            VoucherEntry(account_id=debit_id, debit_amount=amount, credit_amount=0.0),
            VoucherEntry(account_id=credit_id, debit_amount=0.0, credit_amount=amount),
        ]

        def _write() -> PostedVoucher:
            number = next_voucher_number(self.db, self.prefix, self.today().year)
            voucher_id = insert_voucher(
                self.db,
                number,
                "Journal",
                record.detected_date,
                narration,
                entries,
                legacy_raw_id=record.raw_id,
            )
            self.db.run("UPDATE legacy_raw_records SET status = 'posted' WHERE raw_id = ?", (record.raw_id,))
            self.audit.log(
                record.batch_id,
                record.raw_id,
                "RECORD_POSTED",
                f"Created voucher {number}",
                voucher_id=voucher_id,
            )
            return PostedVoucher(raw_id=record.raw_id, voucher_id=voucher_id, voucher_number=number)

        return self.db.transaction(_write)

    def post_batch(self, batch_id: int) -> PostSummary:
        batch = self.batches.require(batch_id)
        records = self.batches.records(batch_id, ("validated",))
        resolver = AccountResolver(self.accounts.list(), self.rules.list(), self.matcher, self.threshold)
        summary = PostSummary(batch_id=batch_id, posted=0, failed=0)
        for record in records:
            try:
                debit_id, credit_id = self._resolve_pair(record, resolver)
            except AccountMappingError as exc:
                logger.warning("Record %s not posted: %s", record.raw_id, exc)
                self.batches.fail_record(record.raw_id, [str(exc)])
                self.audit.log(batch_id, record.raw_id, "RECORD_FAILED", str(exc))
                summary.failed += 1
                continue
            summary.vouchers.append(self._post_record(record, debit_id, credit_id))
            summary.posted += 1

        self.batches.record_progress(
            batch_id,
            "posted",
            summary.posted,
            summary.failed,
            completed=bool(records) or batch.status != "posted",
            touched=bool(records),
        )
        self.audit.log(
            batch_id,
            None,
            "BATCH_POSTED",
            {
                "message": f"Posted {summary.posted} vouchers, {summary.failed} failed",
                "posted": summary.posted,
                "failed": summary.failed,
            },
        )
        logger.info("Batch %s posted: %d vouchers, %d failed", batch_id, summary.posted, summary.failed)
        return summary


__all__ = ["VoucherPoster", "PostSummary", "PostedVoucher", "DEFAULT_NARRATION", "ERR_MAPPING_INCOMPLETE"]
