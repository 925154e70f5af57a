from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


@dataclass
class Settings:
    db_url: str = "sqlite:///./ledger.db"
    legacy_dir: Path = field(default_factory=lambda: Path("legacy-data"))
    export_dir: Path = field(default_factory=lambda: Path("exports"))
    fuzzy_threshold: float = 0.4
    voucher_prefix: str = "LGC"
    single_account_side: str = "debit"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        db_url = os.getenv("LEDGER_DB_URL", cls.db_url)
        legacy_dir = Path(os.getenv("LEDGER_LEGACY_DIR", "legacy-data"))
        export_dir = Path(os.getenv("LEDGER_EXPORT_DIR", "exports"))
        fuzzy_threshold = float(os.getenv("LEDGER_FUZZY_THRESHOLD", cls.fuzzy_threshold))
        voucher_prefix = os.getenv("LEDGER_VOUCHER_PREFIX", cls.voucher_prefix)
        single_account_side = os.getenv("LEDGER_SINGLE_ACCOUNT_SIDE", cls.single_account_side).lower()
        if single_account_side not in {"debit", "credit"}:
            raise ValueError("LEDGER_SINGLE_ACCOUNT_SIDE must be 'debit' or 'credit'")
        log_level = os.getenv("LEDGER_LOG_LEVEL", cls.log_level).upper()
        settings = cls(
            db_url=db_url,
            legacy_dir=legacy_dir,
            export_dir=export_dir,
            fuzzy_threshold=fuzzy_threshold,
            voucher_prefix=voucher_prefix,
            single_account_side=single_account_side,
            log_level=log_level,
        )
        settings.export_dir.mkdir(parents=True, exist_ok=True)
        return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


__all__ = ["Settings", "get_settings"]
