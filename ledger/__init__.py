"""Move legacy bookkeeping exports into the double-entry voucher ledger."""

from .config import Settings, get_settings
from .db import init_db
from .service import MigrationService

__all__ = ["init_db", "get_settings", "Settings", "MigrationService"]
