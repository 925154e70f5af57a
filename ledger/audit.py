from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from .db import Database
from .models import AUDIT_ACTIONS, AuditLogEntry

logger = logging.getLogger(__name__)


class AuditLogger:
    """Append-only writer for ``migration_audit_log``."""

    def __init__(self, db: Database):
        self.db = db

    def log(
        self,
        batch_id: Optional[int],
        raw_id: Optional[int],
        action: str,
        details: Any = None,
        warnings: Optional[List[str]] = None,
        voucher_id: Optional[int] = None,
    ) -> int:
        if action not in AUDIT_ACTIONS:
            raise ValueError(f"Unknown audit action: {action}")
        if details is not None and not isinstance(details, str):
            details = json.dumps(details, default=str, sort_keys=True)
        result = self.db.run(
            """
            INSERT INTO migration_audit_log (batch_id, raw_id, action_taken, details, warnings, final_voucher_id)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (batch_id, raw_id, action, details, json.dumps(warnings) if warnings else None, voucher_id),
        )
        logger.debug("audit %s batch=%s raw=%s", action, batch_id, raw_id)
        return result.last_inserted_id

    def entries(self, batch_id: int) -> List[AuditLogEntry]:
        rows = self.db.get_all(
            "SELECT * FROM migration_audit_log WHERE batch_id = ? ORDER BY created_at DESC, log_id DESC",
            (batch_id,),
        )
        return [AuditLogEntry.from_row(row) for row in rows]


__all__ = ["AuditLogger"]
