import os

from ledger.scanner import scan_legacy_files


def test_missing_directory_is_created(tmp_path):
    target = tmp_path / "nowhere" / "legacy-data"
    assert scan_legacy_files(target) == []
    assert target.is_dir()


def test_files_are_classified_by_extension(tmp_path):
    folder = tmp_path / "legacy"
    folder.mkdir()
    (folder / "ledger.csv").write_text("date,amount\n", encoding="utf-8")
    (folder / "dump.JSON").write_text("[]", encoding="utf-8")
    (folder / "book.xlsx").write_bytes(b"PK")
    (folder / "old.xls").write_bytes(b"xx")
    (folder / "readme.txt").write_text("skip me", encoding="utf-8")
    (folder / "nested.csv").mkdir()

    files = {item.name: item for item in scan_legacy_files(folder)}

    assert set(files) == {"ledger.csv", "dump.JSON", "book.xlsx", "old.xls"}
    assert files["ledger.csv"].source_type == "CSV"
    assert files["dump.JSON"].source_type == "JSON"
    assert files["book.xlsx"].source_type == "Excel"
    assert files["old.xls"].source_type == "Excel"
    assert files["ledger.csv"].size == os.path.getsize(folder / "ledger.csv")
    assert files["ledger.csv"].path == folder / "ledger.csv"
