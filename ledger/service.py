from __future__ import annotations

import logging
import sqlite3
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .audit import AuditLogger
from .batches import BatchRepository
from .config import Settings, get_settings
from .db import Database, init_db
from .detection import FieldDetector
from .exceptions import LedgerError
from .ingest import BatchIngestor
from .mapping_rules import MappingRuleRegistry
from .matching import AccountMatcher
from .models import AuditLogEntry, ImportBatch, MappingRule, RawRecord
from .normalization import FieldNormalizer
from .posting import VoucherPoster
from .scanner import LegacyFile, classify, scan_legacy_files
from .validation import BatchValidator

logger = logging.getLogger(__name__)

Result = Dict[str, Any]


def _failure(exc: Exception) -> Result:
    return {"success": False, "error": str(exc)}


class MigrationService:
    """Entry point for the legacy import pipeline.

    Stage methods return ``{"success": True, ...counts}``; per-record problems
    only show up in the counts. Store-level failures and unknown batches come
    back as ``{"success": False, "error": message}`` after the enclosing
    transaction has rolled back.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        db: Optional[Database] = None,
        matcher: Optional[AccountMatcher] = None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings or get_settings()
        self.db = db or init_db()
        self.audit = AuditLogger(self.db)
        self.batches = BatchRepository(self.db)
        self.rules = MappingRuleRegistry(self.db)
        self.ingestor = BatchIngestor(self.db, self.audit)
        self.normalizer = FieldNormalizer(
            self.db, self.audit, FieldDetector(self.settings.single_account_side)
        )
        self.validator = BatchValidator(self.db, self.audit, matcher, self.settings.fuzzy_threshold)
        self.poster = VoucherPoster(
            self.db,
            self.audit,
            prefix=self.settings.voucher_prefix,
            matcher=matcher,
            threshold=self.settings.fuzzy_threshold,
            today=today,
        )

    def scan_legacy_files(self) -> List[LegacyFile]:
        return scan_legacy_files(self.settings.legacy_dir)

    def import_batch(self, file_path: Path | str, source_type: Optional[str] = None) -> Result:
        path = Path(file_path)
        source_type = source_type or classify(path)
        try:
            outcome = self.ingestor.import_file(path, source_type or "")
        except (LedgerError, sqlite3.Error, OSError, UnicodeDecodeError) as exc:
            logger.error("Import of %s failed: %s", path.name, exc)
            return _failure(exc)
        return {"success": True, **asdict(outcome)}

    def import_content(self, source_file: str, content: bytes | str, source_type: str) -> Result:
        try:
            outcome = self.ingestor.import_content(source_file, content, source_type)
        except (LedgerError, sqlite3.Error, UnicodeDecodeError) as exc:
            logger.error("Import of %s failed: %s", source_file, exc)
            return _failure(exc)
        return {"success": True, **asdict(outcome)}

    def normalize_records(self, batch_id: int) -> Result:
        try:
            summary = self.normalizer.normalize_batch(batch_id)
        except (LedgerError, sqlite3.Error) as exc:
            return _failure(exc)
        return {"success": True, "normalized": summary.normalized, "failed": summary.failed}

    def validate_batch(self, batch_id: int) -> Result:
        try:
            summary = self.validator.validate_batch(batch_id)
        except (LedgerError, sqlite3.Error) as exc:
            return _failure(exc)
        return {"success": True, "validated": summary.validated, "failed": summary.failed}

    def post_batch(self, batch_id: int) -> Result:
        try:
            summary = self.poster.post_batch(batch_id)
        except (LedgerError, sqlite3.Error) as exc:
            logger.error("Posting batch %s aborted: %s", batch_id, exc)
            return _failure(exc)
        return {
            "success": True,
            "posted": summary.posted,
            "failed": summary.failed,
            "vouchers": [asdict(voucher) for voucher in summary.vouchers],
        }

    def run_pipeline(self, file_path: Path | str, source_type: Optional[str] = None) -> Result:
        imported = self.import_batch(file_path, source_type)
        if not imported["success"]:
            return imported
        batch_id = imported["batch_id"]
        stages: Dict[str, Result] = {"import": imported}
        for name, stage in (
            ("normalize", self.normalize_records),
            ("validate", self.validate_batch),
            ("post", self.post_batch),
        ):
            stages[name] = stage(batch_id)
            if not stages[name]["success"]:
                return {"success": False, "batch_id": batch_id, "error": stages[name]["error"], "stages": stages}
        return {"success": True, "batch_id": batch_id, "stages": stages}

    def get_batches(self) -> List[ImportBatch]:
        return self.batches.list()

    def get_batch(self, batch_id: int) -> Optional[ImportBatch]:
        return self.batches.get(batch_id)

    def get_raw_records(self, batch_id: int) -> List[RawRecord]:
        return self.batches.records(batch_id)

    def get_audit_log(self, batch_id: int) -> List[AuditLogEntry]:
        return self.audit.entries(batch_id)

    def get_mapping_rules(self) -> List[MappingRule]:
        return self.rules.list()

    def create_mapping_rule(
        self, pattern: str, account_id: int, priority: int = 0, auto_apply: bool = True
    ) -> Result:
        try:
            rule_id = self.rules.create(pattern, account_id, priority, auto_apply)
        except (ValueError, sqlite3.IntegrityError) as exc:
            return _failure(exc)
        return {"success": True, "rule_id": rule_id}


__all__ = ["MigrationService"]
