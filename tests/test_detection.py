import pytest

from ledger.detection import (
    WARN_NO_AMOUNT,
    WARN_NO_DATE,
    WARN_SINGLE_ACCOUNT,
    FieldDetector,
    detect_fields,
)


def test_csv_style_row_detection():
    result = detect_fields({"date": "2024-03-15", "amount": "5000", "paid_to": "Office Rent", "notes": "Q1 rent"})
    assert result.date == "2024-03-15"
    assert result.amount == 5000.0
    assert result.debit_account == "Office Rent"
    assert result.credit_account is None
    assert result.narration == "Q1 rent"
    assert result.confidence == pytest.approx(0.75)
    assert result.warnings == []


def test_generic_account_goes_to_debit_side():
    result = detect_fields({"Account": "Cash"})
    assert result.debit_account == "Cash"
    assert result.credit_account is None
    assert result.warnings == [WARN_NO_DATE, WARN_NO_AMOUNT, WARN_SINGLE_ACCOUNT]
    assert result.confidence == pytest.approx(0.1)
    assert result.narration == "Account: Cash"


def test_generic_account_side_is_configurable():
    result = FieldDetector(single_account_side="credit").detect({"ledger": "Sales Revenue", "amount": 10})
    assert result.credit_account == "Sales Revenue"
    assert result.debit_account is None


def test_generic_account_ignored_when_a_side_is_known():
    result = detect_fields({"dr_account": "Rent Expense", "account": "Cash"})
    assert result.debit_account == "Rent Expense"
    assert result.credit_account is None
    assert WARN_SINGLE_ACCOUNT not in result.warnings
    assert result.confidence == pytest.approx(0.125)


def test_key_matching_is_case_sensitive_and_ordered():
    result = detect_fields({"AMOUNT": "12", "value": "99", "Narration": "ignored", "memo": "kept"})
    assert result.amount == 12.0
    assert result.narration == "kept"


def test_unparseable_date_falls_through_to_next_key():
    result = detect_fields({"date": "someday", "txn_date": "7/4/2023"})
    assert result.date == "2023-07-04"


def test_zero_amount_counts_as_found_but_warns():
    result = detect_fields({"amount": "0"})
    assert result.amount == 0.0
    assert WARN_NO_AMOUNT in result.warnings
    assert result.confidence == pytest.approx(0.25)


def test_empty_amount_moves_to_next_candidate():
    result = detect_fields({"amount": "", "total": "1,250.00"})
    assert result.amount == 1250.0


def test_full_record_confidence_is_capped():
    payload = {
        "date": "2024-01-01",
        "amount": "10",
        "debit_account": "Cash",
        "credit_account": "Sales Revenue",
        "narration": "Counter sale",
    }
    result = detect_fields(payload)
    assert result.confidence == pytest.approx(0.875)
    assert result.confidence <= 1.0


def test_non_mapping_payload_raises():
    with pytest.raises(TypeError):
        detect_fields(["not", "a", "mapping"])


def test_invalid_side_rejected():
    with pytest.raises(ValueError):
        FieldDetector(single_account_side="both")
