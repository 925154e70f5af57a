from __future__ import annotations

from typing import List, Optional

from .db import Database
from .models import Account

ACCOUNT_TYPES = ("Asset", "Liability", "Income", "Expense", "Equity")


class AccountRegistry:
    """Read access to the chart of accounts, plus account creation."""

    def __init__(self, db: Database):
        self.db = db

    def list(self, active_only: bool = True) -> List[Account]:
        query = "SELECT * FROM accounts"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY account_code, account_name"
        return [Account.from_row(row) for row in self.db.get_all(query)]

    def get(self, account_id: int) -> Optional[Account]:
        row = self.db.get_one("SELECT * FROM accounts WHERE account_id = ?", (account_id,))
        return Account.from_row(row) if row else None

    def create(
        self,
        account_name: str,
        account_type: str,
        account_code: Optional[str] = None,
        parent_account_id: Optional[int] = None,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> int:
        if account_type not in ACCOUNT_TYPES:
            raise ValueError(f"account_type must be one of {', '.join(ACCOUNT_TYPES)}")
        result = self.db.run(
            """
            INSERT INTO accounts (account_code, account_name, account_type, parent_account_id, description, is_active)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (account_code, account_name, account_type, parent_account_id, description, 1 if is_active else 0),
        )
        return result.last_inserted_id

    def set_active(self, account_id: int, is_active: bool) -> None:
        self.db.run(
            "UPDATE accounts SET is_active = ?, updated_at = CURRENT_TIMESTAMP WHERE account_id = ?",
            (1 if is_active else 0, account_id),
        )


__all__ = ["AccountRegistry", "ACCOUNT_TYPES"]
