import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ledger import init_db
from ledger.config import get_settings
from ledger import db as db_module
from ledger.service import MigrationService


@pytest.fixture(autouse=True)
def configure_env(tmp_path, monkeypatch):
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("LEDGER_DB_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("LEDGER_LEGACY_DIR", str(tmp_path / "legacy-data"))
    monkeypatch.setenv("LEDGER_EXPORT_DIR", str(tmp_path / "exports"))
    try:
        get_settings.cache_clear()
    except AttributeError:
        pass
    init_db()
    yield
    try:
        get_settings.cache_clear()
    except AttributeError:
        pass
    for database in db_module._connection_cache.values():
        database.close()
    db_module._connection_cache.clear()


@pytest.fixture
def service():
    return MigrationService(today=lambda: date(2024, 6, 30))


@pytest.fixture
def account_ids(service):
    rows = service.db.get_all("SELECT account_id, account_name FROM accounts")
    return {row["account_name"]: row["account_id"] for row in rows}


@pytest.fixture
def legacy_file(tmp_path):
    def _write(name, content):
        path = tmp_path / "legacy-data" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
