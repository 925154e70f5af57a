from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from .audit import AuditLogger
from .db import Database
from .exceptions import UnsupportedFormatError

logger = logging.getLogger(__name__)

SUPPORTED_SOURCE_TYPES = {"CSV", "JSON"}
# Values past the last header column are kept under this key.
CSV_OVERFLOW_KEY = "_extra"


@dataclass
class IngestResult:
    batch_id: int
    records_imported: int


def _decode(content: bytes | str) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8-sig")
    return content.lstrip("\ufeff")


def _parse_csv(text: str) -> List[Dict[str, Any]]:
    reader = csv.DictReader(io.StringIO(text, newline=""), restkey=CSV_OVERFLOW_KEY)
    rows: List[Dict[str, Any]] = []
    for row in reader:
        if not any(value not in (None, "", []) for value in row.values()):
            continue
        rows.append(dict(row))
    return rows


def _parse_json(text: str) -> List[Dict[str, Any]]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise UnsupportedFormatError(f"Invalid JSON: {exc}", "JSON") from exc
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list) and all(isinstance(item, dict) for item in data):
        return list(data)
    raise UnsupportedFormatError("JSON must be an object or an array of objects", "JSON")


def parse_payloads(content: bytes | str, source_type: str) -> List[Dict[str, Any]]:
    if source_type not in SUPPORTED_SOURCE_TYPES:
        raise UnsupportedFormatError("Unsupported file type. Use CSV or JSON.", source_type)
    text = _decode(content)
    if source_type == "CSV":
        return _parse_csv(text)
    return _parse_json(text)


class BatchIngestor:
    def __init__(self, db: Database, audit: AuditLogger):
        self.db = db
        self.audit = audit

    def import_file(self, path: Path, source_type: str) -> IngestResult:
        path = Path(path)
        return self.import_content(path.name, path.read_bytes(), source_type)

    def import_content(self, source_file: str, content: bytes | str, source_type: str) -> IngestResult:
        payloads = parse_payloads(content, source_type)
        raw_payloads = [json.dumps(payload, default=str) for payload in payloads]

        def _insert() -> IngestResult:
            result = self.db.run(
                """
                INSERT INTO legacy_import_batches (source_file, source_type, total_records, status)
                VALUES (?, ?, ?, 'pending')
                """,
                (source_file, source_type, len(raw_payloads)),
            )
            batch_id = result.last_inserted_id
            for raw_payload in raw_payloads:
                self.db.run(
                    "INSERT INTO legacy_raw_records (batch_id, raw_payload, status) VALUES (?, ?, 'raw')",
                    (batch_id, raw_payload),
                )
            self.audit.log(
                batch_id,
                None,
                "BATCH_IMPORTED",
                f"Imported {len(raw_payloads)} records from {source_file}",
            )
            return IngestResult(batch_id=batch_id, records_imported=len(raw_payloads))

        outcome = self.db.transaction(_insert)
        logger.info("Imported batch %s: %d records from %s", outcome.batch_id, outcome.records_imported, source_file)
        return outcome


__all__ = ["BatchIngestor", "IngestResult", "parse_payloads", "SUPPORTED_SOURCE_TYPES"]
