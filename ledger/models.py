from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

BATCH_STATUSES = ("pending", "processing", "normalized", "validated", "posted", "failed")
RECORD_STATUSES = ("raw", "normalized", "mapped", "validated", "posted", "failed", "skipped")
SOURCE_TYPES = ("CSV", "JSON", "Excel", "Manual")
AUDIT_ACTIONS = (
    "BATCH_IMPORTED",
    "BATCH_NORMALIZED",
    "BATCH_VALIDATED",
    "RECORD_POSTED",
    "RECORD_FAILED",
    "BATCH_POSTED",
)

# Forward order of the batch lifecycle; "failed" sits outside it.
BATCH_STATUS_ORDER = {"pending": 0, "processing": 1, "normalized": 2, "validated": 3, "posted": 4}


def advance_status(current: str, target: str) -> str:
    """Return ``target`` unless it would move the batch backwards."""
    if current not in BATCH_STATUS_ORDER or target not in BATCH_STATUS_ORDER:
        return target
    if BATCH_STATUS_ORDER[target] < BATCH_STATUS_ORDER[current]:
        return current
    return target


def _load_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return list(json.loads(value))


def dump_list(values: List[str]) -> Optional[str]:
    return json.dumps(values) if values else None


@dataclass
class Account:
    account_id: int
    account_code: Optional[str]
    account_name: str
    account_type: str
    is_active: bool = True

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Account":
        return cls(
            account_id=row["account_id"],
            account_code=row.get("account_code"),
            account_name=row["account_name"],
            account_type=row["account_type"],
            is_active=bool(row.get("is_active", 1)),
        )


@dataclass
class ImportBatch:
    batch_id: int
    source_file: Optional[str]
    source_type: str
    total_records: int
    processed_records: int
    failed_records: int
    status: str
    imported_at: str
    completed_at: Optional[str]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ImportBatch":
        return cls(
            batch_id=row["batch_id"],
            source_file=row.get("source_file"),
            source_type=row["source_type"],
            total_records=row.get("total_records") or 0,
            processed_records=row.get("processed_records") or 0,
            failed_records=row.get("failed_records") or 0,
            status=row["status"],
            imported_at=row["imported_at"],
            completed_at=row.get("completed_at"),
        )


@dataclass
class RawRecord:
    raw_id: int
    batch_id: int
    raw_payload: str
    detected_date: Optional[str] = None
    detected_amount: Optional[float] = None
    detected_debit_account: Optional[str] = None
    detected_credit_account: Optional[str] = None
    detected_narration: Optional[str] = None
    confidence_score: float = 0.0
    status: str = "raw"
    validation_errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def payload(self) -> Dict[str, Any]:
        return json.loads(self.raw_payload)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "RawRecord":
        return cls(
            raw_id=row["raw_id"],
            batch_id=row["batch_id"],
            raw_payload=row["raw_payload"],
            detected_date=row.get("detected_date"),
            detected_amount=row.get("detected_amount"),
            detected_debit_account=row.get("detected_debit_account"),
            detected_credit_account=row.get("detected_credit_account"),
            detected_narration=row.get("detected_narration"),
            confidence_score=row.get("confidence_score") or 0.0,
            status=row["status"],
            validation_errors=_load_list(row.get("validation_errors")),
            warnings=_load_list(row.get("warnings")),
        )


@dataclass
class MappingRule:
    rule_id: int
    legacy_text_pattern: str
    mapped_account_id: int
    priority: int = 0
    auto_apply: bool = True
    account_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "MappingRule":
        return cls(
            rule_id=row["rule_id"],
            legacy_text_pattern=row["legacy_text_pattern"],
            mapped_account_id=row["mapped_account_id"],
            priority=row.get("priority") or 0,
            auto_apply=bool(row.get("auto_apply", 1)),
            account_name=row.get("account_name"),
        )


@dataclass
class AuditLogEntry:
    log_id: int
    batch_id: Optional[int]
    raw_id: Optional[int]
    action_taken: str
    details: Optional[str]
    warnings: Optional[str]
    final_voucher_id: Optional[int]
    created_at: str

    @property
    def details_data(self) -> Any:
        if self.details is None:
            return None
        try:
            return json.loads(self.details)
        except ValueError:
            return self.details

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AuditLogEntry":
        return cls(
            log_id=row["log_id"],
            batch_id=row.get("batch_id"),
            raw_id=row.get("raw_id"),
            action_taken=row["action_taken"],
            details=row.get("details"),
            warnings=row.get("warnings"),
            final_voucher_id=row.get("final_voucher_id"),
            created_at=row["created_at"],
        )


@dataclass
class VoucherEntry:
    account_id: int
    debit_amount: float = 0.0
    credit_amount: float = 0.0
    narration: Optional[str] = None
    entry_id: Optional[int] = None


@dataclass
class Voucher:
    voucher_id: int
    voucher_number: str
    voucher_type: str
    voucher_date: str
    narration: Optional[str]
    total_amount: float
    is_posted: bool
    legacy_raw_id: Optional[int]
    entries: List[VoucherEntry] = field(default_factory=list)

    @property
    def total_debit(self) -> float:
        return sum(entry.debit_amount for entry in self.entries)

    @property
    def total_credit(self) -> float:
        return sum(entry.credit_amount for entry in self.entries)


__all__ = [
    "Account",
    "ImportBatch",
    "RawRecord",
    "MappingRule",
    "AuditLogEntry",
    "Voucher",
    "VoucherEntry",
    "BATCH_STATUSES",
    "RECORD_STATUSES",
    "SOURCE_TYPES",
    "AUDIT_ACTIONS",
    "advance_status",
    "dump_list",
]
