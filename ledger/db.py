from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, TypeVar

from .config import get_settings
from .exceptions import NestedTransactionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_connection_cache: dict[str, "Database"] = {}


@dataclass(frozen=True)
class RunResult:
    changes: int
    last_inserted_id: Optional[int]


class Database:
    """Single-writer sqlite handle.

    Statements run outside :meth:`atomic` commit immediately. Inside it they
    are held until the outermost block commits; a second ``atomic`` opened
    while one is active raises :class:`NestedTransactionError`.
    """

    def __init__(self, path: str):
        self.path = path
        self._conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._in_transaction = False

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def run(self, statement: str, params: Sequence[Any] = ()) -> RunResult:
        cursor = self._conn.execute(statement, tuple(params))
        return RunResult(changes=cursor.rowcount, last_inserted_id=cursor.lastrowid)

    def get_one(self, query: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        row = self._conn.execute(query, tuple(params)).fetchone()
        return dict(row) if row is not None else None

    def get_all(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        return [dict(row) for row in self._conn.execute(query, tuple(params)).fetchall()]

    @contextmanager
    def atomic(self) -> Iterator["Database"]:
        if self._in_transaction:
            raise NestedTransactionError("A transaction is already active on this database")
        self._in_transaction = True
        self._conn.execute("BEGIN")
        try:
            yield self
            self._conn.execute("COMMIT")
        except Exception:
            self._conn.execute("ROLLBACK")
            raise
        finally:
            self._in_transaction = False

    def transaction(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        with self.atomic():
            return fn(*args, **kwargs)

    def executescript(self, script: str) -> None:
        self._conn.executescript(script)

    def close(self) -> None:
        self._conn.close()


def get_database_path() -> Path:
    settings = get_settings()
    url = settings.db_url
    if url.startswith("sqlite:///"):
        path = url.replace("sqlite:///", "")
        return Path(path)
    raise ValueError("Only sqlite:/// URLs are supported")


def get_database() -> Database:
    db_path = str(get_database_path())
    if db_path not in _connection_cache:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        _connection_cache[db_path] = Database(db_path)
    return _connection_cache[db_path]


SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id INTEGER PRIMARY KEY AUTOINCREMENT,
    account_code TEXT UNIQUE,
    account_name TEXT NOT NULL,
    account_type TEXT NOT NULL CHECK (account_type IN ('Asset', 'Liability', 'Income', 'Expense', 'Equity')),
    parent_account_id INTEGER,
    opening_balance REAL DEFAULT 0,
    opening_balance_type TEXT CHECK (opening_balance_type IN ('Debit', 'Credit')),
    description TEXT,
    is_active INTEGER DEFAULT 1,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (parent_account_id) REFERENCES accounts(account_id)
);

CREATE TABLE IF NOT EXISTS legacy_import_batches (
    batch_id INTEGER PRIMARY KEY AUTOINCREMENT,
    source_file TEXT,
    source_type TEXT CHECK (source_type IN ('CSV', 'Excel', 'JSON', 'Manual')),
    total_records INTEGER DEFAULT 0,
    processed_records INTEGER DEFAULT 0,
    failed_records INTEGER DEFAULT 0,
    status TEXT DEFAULT 'pending'
        CHECK (status IN ('pending', 'processing', 'normalized', 'validated', 'posted', 'failed')),
    imported_at TEXT DEFAULT CURRENT_TIMESTAMP,
    completed_at TEXT
);

CREATE TABLE IF NOT EXISTS legacy_raw_records (
    raw_id INTEGER PRIMARY KEY AUTOINCREMENT,
    batch_id INTEGER NOT NULL,
    raw_payload TEXT NOT NULL,
    detected_date TEXT,
    detected_amount REAL,
    detected_debit_account TEXT,
    detected_credit_account TEXT,
    detected_narration TEXT,
    confidence_score REAL DEFAULT 0,
    status TEXT DEFAULT 'raw'
        CHECK (status IN ('raw', 'normalized', 'mapped', 'validated', 'posted', 'failed', 'skipped')),
    validation_errors TEXT,
    warnings TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (batch_id) REFERENCES legacy_import_batches(batch_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS vouchers (
    voucher_id INTEGER PRIMARY KEY AUTOINCREMENT,
    voucher_number TEXT UNIQUE NOT NULL,
    voucher_type TEXT NOT NULL CHECK (voucher_type IN ('Debit', 'Credit', 'Journal')),
    voucher_date TEXT NOT NULL,
    narration TEXT,
    total_amount REAL NOT NULL,
    is_posted INTEGER DEFAULT 1,
    legacy_raw_id INTEGER,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (legacy_raw_id) REFERENCES legacy_raw_records(raw_id)
);

CREATE TABLE IF NOT EXISTS voucher_entries (
    entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
    voucher_id INTEGER NOT NULL,
    account_id INTEGER NOT NULL,
    debit_amount REAL DEFAULT 0,
    credit_amount REAL DEFAULT 0,
    narration TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (voucher_id) REFERENCES vouchers(voucher_id) ON DELETE CASCADE,
    FOREIGN KEY (account_id) REFERENCES accounts(account_id),
    CHECK (
        (debit_amount > 0 AND credit_amount = 0) OR
        (credit_amount > 0 AND debit_amount = 0) OR
        (debit_amount = 0 AND credit_amount = 0)
    )
);

CREATE TABLE IF NOT EXISTS legacy_mapping_rules (
    rule_id INTEGER PRIMARY KEY AUTOINCREMENT,
    legacy_text_pattern TEXT NOT NULL,
    mapped_account_id INTEGER NOT NULL,
    priority INTEGER DEFAULT 0,
    auto_apply INTEGER DEFAULT 1,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (mapped_account_id) REFERENCES accounts(account_id)
);

CREATE TABLE IF NOT EXISTS migration_audit_log (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    batch_id INTEGER,
    raw_id INTEGER,
    action_taken TEXT NOT NULL,
    details TEXT,
    warnings TEXT,
    final_voucher_id INTEGER,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (batch_id) REFERENCES legacy_import_batches(batch_id),
    FOREIGN KEY (raw_id) REFERENCES legacy_raw_records(raw_id),
    FOREIGN KEY (final_voucher_id) REFERENCES vouchers(voucher_id)
);

CREATE INDEX IF NOT EXISTS idx_accounts_type ON accounts(account_type);
CREATE INDEX IF NOT EXISTS idx_vouchers_date ON vouchers(voucher_date);
CREATE INDEX IF NOT EXISTS idx_voucher_entries_voucher ON voucher_entries(voucher_id);
CREATE INDEX IF NOT EXISTS idx_voucher_entries_account ON voucher_entries(account_id);
CREATE INDEX IF NOT EXISTS idx_legacy_raw_batch ON legacy_raw_records(batch_id);
CREATE INDEX IF NOT EXISTS idx_legacy_raw_status ON legacy_raw_records(status);
"""

DEFAULT_ACCOUNTS = [
    ("1000", "Cash", "Asset"),
    ("1010", "Petty Cash", "Asset"),
    ("1100", "Bank Account", "Asset"),
    ("1200", "Accounts Receivable", "Asset"),
    ("1300", "Inventory", "Asset"),
    ("1400", "Prepaid Expenses", "Asset"),
    ("1500", "Fixed Assets", "Asset"),
    ("1510", "Accumulated Depreciation", "Asset"),
    ("2000", "Accounts Payable", "Liability"),
    ("2100", "Accrued Expenses", "Liability"),
    ("2200", "Short-term Loans", "Liability"),
    ("2300", "Long-term Loans", "Liability"),
    ("2400", "Tax Payable", "Liability"),
    ("3000", "Owner's Capital", "Equity"),
    ("3100", "Retained Earnings", "Equity"),
    ("3200", "Drawings", "Equity"),
    ("4000", "Sales Revenue", "Income"),
    ("4100", "Service Revenue", "Income"),
    ("4200", "Interest Income", "Income"),
    ("4300", "Other Income", "Income"),
    ("5000", "Cost of Goods Sold", "Expense"),
    ("5100", "Salaries & Wages", "Expense"),
    ("5200", "Rent Expense", "Expense"),
    ("5300", "Utilities Expense", "Expense"),
    ("5400", "Office Supplies", "Expense"),
    ("5500", "Depreciation Expense", "Expense"),
    ("5600", "Insurance Expense", "Expense"),
    ("5700", "Interest Expense", "Expense"),
    ("5800", "Bank Charges", "Expense"),
    ("5900", "Miscellaneous Expense", "Expense"),
]


def init_db(seed: bool = True) -> Database:
    db = get_database()
    db.executescript(SCHEMA)
    if seed:
        existing = db.get_one("SELECT COUNT(*) AS count FROM accounts")
        if existing and existing["count"] == 0:
            with db.atomic():
                for code, name, account_type in DEFAULT_ACCOUNTS:
                    db.run(
                        "INSERT INTO accounts (account_code, account_name, account_type) VALUES (?, ?, ?)",
                        (code, name, account_type),
                    )
            logger.info("Seeded %d default accounts", len(DEFAULT_ACCOUNTS))
    return db


__all__ = ["Database", "RunResult", "init_db", "get_database", "get_database_path"]
