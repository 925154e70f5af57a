import pytest

from ledger.db import get_database
from ledger.exceptions import VoucherValidationError
from ledger.models import VoucherEntry
from ledger.vouchers import VoucherService, format_voucher_number, next_voucher_number, validate_entries


def test_validate_entries_returns_total():
    total = validate_entries([VoucherEntry(1, debit_amount=100.0), VoucherEntry(2, credit_amount=100.0)])
    assert total == 100.0


def test_validate_entries_allows_rounding_tolerance():
    validate_entries(
        [
            VoucherEntry(1, debit_amount=33.33),
            VoucherEntry(2, debit_amount=33.33),
            VoucherEntry(3, debit_amount=33.33),
            VoucherEntry(4, credit_amount=100.0),
        ]
    )


@pytest.mark.parametrize(
    "entries, message",
    [
        ([VoucherEntry(1, debit_amount=10)], "at least 2 entries"),
        ([VoucherEntry(0, debit_amount=10), VoucherEntry(2, credit_amount=10)], "account selected"),
        ([VoucherEntry(1, debit_amount=-10), VoucherEntry(2, credit_amount=-10)], "negative"),
        ([VoucherEntry(1, debit_amount=10, credit_amount=10), VoucherEntry(2, credit_amount=10)], "both"),
        ([VoucherEntry(1), VoucherEntry(2, credit_amount=10)], "either a debit or credit"),
        ([VoucherEntry(1, debit_amount=10), VoucherEntry(2, credit_amount=9)], "not balanced"),
        ([VoucherEntry(1, debit_amount=float("inf")), VoucherEntry(2, credit_amount=float("inf"))], "finite"),
        ([VoucherEntry(1, debit_amount=100.0), VoucherEntry(2, credit_amount=99.98)], "not balanced"),
    ],
)
def test_validate_entries_rejects(entries, message):
    with pytest.raises(VoucherValidationError, match=message):
        validate_entries(entries)


def test_create_voucher_numbers_by_type_and_year():
    service = VoucherService(get_database())
    entries = [VoucherEntry(1, debit_amount=50.0), VoucherEntry(3, credit_amount=50.0)]

    first = service.create_voucher("Journal", "2023-05-01", entries, narration="Opening")
    second = service.create_voucher("Journal", "2023-06-01", entries)
    debit = service.create_voucher("Debit", "2023-06-01", entries)

    assert first.voucher_number == "JRN-2023-00001"
    assert second.voucher_number == "JRN-2023-00002"
    assert debit.voucher_number == "DBV-2023-00001"
    assert first.total_amount == 50.0
    assert first.total_debit == first.total_credit == 50.0
    assert len(first.entries) == 2


def test_unbalanced_voucher_is_not_written():
    db = get_database()
    service = VoucherService(db)
    with pytest.raises(VoucherValidationError):
        service.create_voucher("Journal", "2023-05-01", [VoucherEntry(1, debit_amount=5), VoucherEntry(2, credit_amount=4)])
    assert db.get_one("SELECT COUNT(*) AS count FROM vouchers")["count"] == 0


def test_delete_voucher_removes_entries():
    db = get_database()
    service = VoucherService(db)
    voucher = service.create_voucher(
        "Credit", "2023-05-01", [VoucherEntry(1, debit_amount=5), VoucherEntry(2, credit_amount=5)]
    )
    assert service.delete_voucher(voucher.voucher_id)
    assert service.get_voucher(voucher.voucher_id) is None
    assert db.get_one("SELECT COUNT(*) AS count FROM voucher_entries")["count"] == 0


def test_format_voucher_number_pads():
    assert format_voucher_number("LGC", 2024, 7) == "LGC-2024-00007"


def _pair(amount, debit_account=1, credit_account=3):
    return [VoucherEntry(debit_account, debit_amount=amount), VoucherEntry(credit_account, credit_amount=amount)]


def test_numbering_uses_highest_numeric_sequence():
    service = VoucherService(get_database())
    service.create_voucher("Journal", "2024-01-01", _pair(5), voucher_number="JRN-2024-00041")
    service.create_voucher("Journal", "2024-01-02", _pair(5), voucher_number="JRN-2024-00007")
    service.create_voucher("Journal", "2024-01-03", _pair(5), voucher_number="JRN-2024-A1")
    service.create_voucher("Journal", "2024-01-04", _pair(5), voucher_number="jrn-2024-00099")

    assert next_voucher_number(get_database(), "JRN", 2024) == "JRN-2024-00042"
    assert next_voucher_number(get_database(), "JRN", 2025) == "JRN-2025-00001"


def test_update_voucher_replaces_header_and_entries():
    service = VoucherService(get_database())
    voucher = service.create_voucher("Debit", "2024-02-01", _pair(50.0), narration="Draft")

    updated = service.update_voucher(
        voucher.voucher_id,
        "2024-02-03",
        [
            VoucherEntry(1, debit_amount=40.0),
            VoucherEntry(2, debit_amount=35.0),
            VoucherEntry(3, credit_amount=75.0),
        ],
        narration="Final",
    )

    assert updated.voucher_number == voucher.voucher_number
    assert updated.voucher_type == "Debit"
    assert (updated.voucher_date, updated.narration, updated.total_amount) == ("2024-02-03", "Final", 75.0)
    assert [entry.account_id for entry in updated.entries] == [1, 2, 3]
    assert service.update_voucher(9999, "2024-02-03", _pair(1.0)) is None


def test_rejected_update_keeps_original_entries():
    service = VoucherService(get_database())
    voucher = service.create_voucher("Journal", "2024-02-01", _pair(20.0))

    with pytest.raises(VoucherValidationError):
        service.update_voucher(voucher.voucher_id, "2024-02-02", [VoucherEntry(1, debit_amount=20.0)])

    unchanged = service.get_voucher(voucher.voucher_id)
    assert unchanged.voucher_date == "2024-02-01"
    assert len(unchanged.entries) == 2
