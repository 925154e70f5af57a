from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .config import get_settings
from .db import init_db
from .service import MigrationService

app = FastAPI(title="Legacy Ledger Migration API")


class LegacyFileOut(BaseModel):
    name: str
    path: str
    source_type: str
    size: int
    modified: datetime


class ImportRequest(BaseModel):
    path: str
    source_type: Optional[str] = None


class MappingRuleIn(BaseModel):
    legacy_text_pattern: str
    mapped_account_id: int
    priority: int = 0
    auto_apply: bool = True


class BatchOut(BaseModel):
    batch_id: int
    source_file: Optional[str] = None
    source_type: str
    total_records: int
    processed_records: int
    failed_records: int
    status: str
    imported_at: str
    completed_at: Optional[str] = None


class RawRecordOut(BaseModel):
    raw_id: int
    batch_id: int
    raw_payload: str
    detected_date: Optional[str] = None
    detected_amount: Optional[float] = None
    detected_debit_account: Optional[str] = None
    detected_credit_account: Optional[str] = None
    detected_narration: Optional[str] = None
    confidence_score: float
    status: str
    validation_errors: List[str]
    warnings: List[str]


class AuditEntryOut(BaseModel):
    log_id: int
    batch_id: Optional[int] = None
    raw_id: Optional[int] = None
    action_taken: str
    details: Optional[str] = None
    warnings: Optional[str] = None
    final_voucher_id: Optional[int] = None
    created_at: str


class MappingRuleOut(BaseModel):
    rule_id: int
    legacy_text_pattern: str
    mapped_account_id: int
    priority: int
    auto_apply: bool
    account_name: Optional[str] = None


def _unwrap(result: dict) -> dict:
    if not result["success"]:
        raise HTTPException(status_code=400, detail=result["error"])
    return result


@app.on_event("startup")
def startup_event() -> None:
    init_db()


@app.get("/legacy/files", response_model=List[LegacyFileOut])
def scan_files():
    return [{**asdict(item), "path": str(item.path)} for item in MigrationService().scan_legacy_files()]


@app.post("/legacy/batches")
def import_batch(payload: ImportRequest):
    return _unwrap(MigrationService().import_batch(payload.path, payload.source_type))


@app.get("/legacy/batches", response_model=List[BatchOut])
def list_batches():
    return [asdict(batch) for batch in MigrationService().get_batches()]


@app.get("/legacy/batches/{batch_id}/records", response_model=List[RawRecordOut])
def raw_records(batch_id: int):
    return [asdict(record) for record in MigrationService().get_raw_records(batch_id)]


@app.post("/legacy/batches/{batch_id}/normalize")
def normalize(batch_id: int):
    return _unwrap(MigrationService().normalize_records(batch_id))


@app.post("/legacy/batches/{batch_id}/validate")
def validate(batch_id: int):
    return _unwrap(MigrationService().validate_batch(batch_id))


@app.post("/legacy/batches/{batch_id}/post")
def post(batch_id: int):
    return _unwrap(MigrationService().post_batch(batch_id))


@app.get("/legacy/batches/{batch_id}/audit", response_model=List[AuditEntryOut])
def audit_log(batch_id: int):
    return [asdict(entry) for entry in MigrationService().get_audit_log(batch_id)]


@app.get("/legacy/rules", response_model=List[MappingRuleOut])
def mapping_rules():
    return [asdict(rule) for rule in MigrationService().get_mapping_rules()]


@app.post("/legacy/rules")
def create_rule(payload: MappingRuleIn):
    return _unwrap(
        MigrationService().create_mapping_rule(
            payload.legacy_text_pattern,
            payload.mapped_account_id,
            payload.priority,
            payload.auto_apply,
        )
    )


@app.get("/health")
def health():
    settings = get_settings()
    return {"status": "ok", "db": settings.db_url}
