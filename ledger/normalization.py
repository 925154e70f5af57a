from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from .audit import AuditLogger
from .batches import BatchRepository
from .db import Database
from .detection import FieldDetector
from .models import dump_list

logger = logging.getLogger(__name__)


@dataclass
class NormalizeSummary:
    batch_id: int
    normalized: int
    failed: int


class FieldNormalizer:
    """Annotates every ``raw`` record of a batch with detected fields.

    A record whose payload cannot be read or detected is marked ``failed`` on
    its own; the rest of the batch carries on.
    """

    def __init__(self, db: Database, audit: AuditLogger, detector: FieldDetector | None = None):
        self.db = db
        self.audit = audit
        self.batches = BatchRepository(db)
        self.detector = detector or FieldDetector()

    def normalize_batch(self, batch_id: int) -> NormalizeSummary:
        self.batches.mark_status(batch_id, "processing")
        records = self.batches.records(batch_id, ("raw",))
        normalized = 0
        failed = 0
        for record in records:
            try:
                detected = self.detector.detect(json.loads(record.raw_payload))
            except Exception as exc:
                logger.warning("Record %s could not be normalized: %s", record.raw_id, exc)
                self.batches.fail_record(record.raw_id, [str(exc)])
                failed += 1
                continue
            self.db.run(
                """
                UPDATE legacy_raw_records SET
                    detected_date = ?,
                    detected_amount = ?,
                    detected_debit_account = ?,
                    detected_credit_account = ?,
                    detected_narration = ?,
                    confidence_score = ?,
                    status = 'normalized',
                    warnings = ?
                WHERE raw_id = ?
                """,
                (
                    detected.date,
                    detected.amount,
                    detected.debit_account,
                    detected.credit_account,
                    detected.narration,
                    detected.confidence,
                    dump_list(detected.warnings),
                    record.raw_id,
                ),
            )
            normalized += 1

        self.batches.record_progress(batch_id, "normalized", normalized, failed, touched=bool(records))
        self.audit.log(
            batch_id,
            None,
            "BATCH_NORMALIZED",
            {"message": f"Normalized {normalized} records, {failed} failed", "normalized": normalized, "failed": failed},
        )
        logger.info("Batch %s normalized: %d ok, %d failed", batch_id, normalized, failed)
        return NormalizeSummary(batch_id=batch_id, normalized=normalized, failed=failed)


__all__ = ["FieldNormalizer", "NormalizeSummary"]
