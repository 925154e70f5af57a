from __future__ import annotations

from typing import List, Optional

from .db import Database
from .models import MappingRule

_SELECT = """
    SELECT mr.*, a.account_name
    FROM legacy_mapping_rules mr
    JOIN accounts a ON mr.mapped_account_id = a.account_id
"""


class MappingRuleRegistry:
    """CRUD over ``legacy_mapping_rules``.

    ``list`` order (priority descending, then insertion order) is the order
    the resolver checks rules in.
    """

    def __init__(self, db: Database):
        self.db = db

    def create(self, pattern: str, account_id: int, priority: int = 0, auto_apply: bool = True) -> int:
        if not pattern or not pattern.strip():
            raise ValueError("legacy_text_pattern must not be empty")
        result = self.db.run(
            """
            INSERT INTO legacy_mapping_rules (legacy_text_pattern, mapped_account_id, priority, auto_apply)
            VALUES (?, ?, ?, ?)
            """,
            (pattern, account_id, priority, 1 if auto_apply else 0),
        )
        return result.last_inserted_id

    def get(self, rule_id: int) -> Optional[MappingRule]:
        row = self.db.get_one(_SELECT + " WHERE mr.rule_id = ?", (rule_id,))
        return MappingRule.from_row(row) if row else None

    def list(self) -> List[MappingRule]:
        rows = self.db.get_all(_SELECT + " ORDER BY mr.priority DESC, mr.rule_id ASC")
        return [MappingRule.from_row(row) for row in rows]

    def update(
        self,
        rule_id: int,
        pattern: Optional[str] = None,
        account_id: Optional[int] = None,
        priority: Optional[int] = None,
        auto_apply: Optional[bool] = None,
    ) -> bool:
        current = self.get(rule_id)
        if current is None:
            return False
        self.db.run(
            """
            UPDATE legacy_mapping_rules
            SET legacy_text_pattern = ?, mapped_account_id = ?, priority = ?, auto_apply = ?
            WHERE rule_id = ?
            """,
            (
                pattern if pattern is not None else current.legacy_text_pattern,
                account_id if account_id is not None else current.mapped_account_id,
                priority if priority is not None else current.priority,
                int(auto_apply if auto_apply is not None else current.auto_apply),
                rule_id,
            ),
        )
        return True

    def delete(self, rule_id: int) -> bool:
        return self.db.run("DELETE FROM legacy_mapping_rules WHERE rule_id = ?", (rule_id,)).changes > 0


__all__ = ["MappingRuleRegistry"]
