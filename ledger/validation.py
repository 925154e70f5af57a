from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .accounts import AccountRegistry
from .audit import AuditLogger
from .batches import BatchRepository
from .db import Database
from .mapping_rules import MappingRuleRegistry
from .matching import DEFAULT_THRESHOLD, AccountMatcher, AccountResolver
from .models import RawRecord, dump_list

logger = logging.getLogger(__name__)

ERR_MISSING_DATE = "Missing date"
ERR_BAD_AMOUNT = "Invalid or missing amount"
ERR_NO_ACCOUNTS = "No accounts could be mapped"
WARN_ONE_ACCOUNT = "Only one account mapped - manual intervention required"


@dataclass
class RecordCheck:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    debit_account_id: Optional[int] = None
    credit_account_id: Optional[int] = None

    @property
    def status(self) -> str:
        return "failed" if self.errors else "validated"


@dataclass
class ValidateSummary:
    batch_id: int
    validated: int
    failed: int


def check_record(record: RawRecord, resolver: AccountResolver) -> RecordCheck:
    check = RecordCheck(warnings=list(record.warnings))
    if not record.detected_date:
        check.errors.append(ERR_MISSING_DATE)
    if not record.detected_amount or record.detected_amount <= 0:
        check.errors.append(ERR_BAD_AMOUNT)

    if record.detected_debit_account:
        check.debit_account_id = resolver.resolve(record.detected_debit_account)
        if check.debit_account_id is None:
            check.warnings.append(f"Could not map debit account: {record.detected_debit_account}")
    if record.detected_credit_account:
        check.credit_account_id = resolver.resolve(record.detected_credit_account)
        if check.credit_account_id is None:
            check.warnings.append(f"Could not map credit account: {record.detected_credit_account}")

    if check.debit_account_id is None and check.credit_account_id is None:
        check.errors.append(ERR_NO_ACCOUNTS)
    elif check.debit_account_id is None or check.credit_account_id is None:
        check.warnings.append(WARN_ONE_ACCOUNT)
    return check


class BatchValidator:
    def __init__(
        self,
        db: Database,
        audit: AuditLogger,
        matcher: Optional[AccountMatcher] = None,
        threshold: float = DEFAULT_THRESHOLD,
    ):
        self.db = db
        self.audit = audit
        self.batches = BatchRepository(db)
        self.accounts = AccountRegistry(db)
        self.rules = MappingRuleRegistry(db)
        self.matcher = matcher
        self.threshold = threshold

    def resolver(self) -> AccountResolver:
        return AccountResolver(self.accounts.list(), self.rules.list(), self.matcher, self.threshold)

    def validate_batch(self, batch_id: int) -> ValidateSummary:
        self.batches.require(batch_id)
        records = self.batches.records(batch_id, ("normalized", "mapped"))
        resolver = self.resolver()
        validated = 0
        failed = 0
        for record in records:
            check = check_record(record, resolver)
            if check.status == "validated":
                validated += 1
            else:
                failed += 1
                logger.warning("Record %s failed validation: %s", record.raw_id, "; ".join(check.errors))
            self.db.run(
                "UPDATE legacy_raw_records SET status = ?, validation_errors = ?, warnings = ? WHERE raw_id = ?",
                (check.status, dump_list(check.errors), dump_list(check.warnings), record.raw_id),
            )

        self.batches.record_progress(batch_id, "validated", validated, failed, touched=bool(records))
        self.audit.log(
            batch_id,
            None,
            "BATCH_VALIDATED",
            {"message": f"Validated {validated} records, {failed} failed", "validated": validated, "failed": failed},
        )
        logger.info("Batch %s validated: %d ok, %d failed", batch_id, validated, failed)
        return ValidateSummary(batch_id=batch_id, validated=validated, failed=failed)


__all__ = [
    "BatchValidator",
    "ValidateSummary",
    "RecordCheck",
    "check_record",
    "ERR_MISSING_DATE",
    "ERR_BAD_AMOUNT",
    "ERR_NO_ACCOUNTS",
    "WARN_ONE_ACCOUNT",
]
