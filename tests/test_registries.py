import sqlite3

import pytest

from ledger.accounts import AccountRegistry
from ledger.mapping_rules import MappingRuleRegistry
from ledger.models import VoucherEntry
from ledger.vouchers import VoucherService


def test_account_registry_create_and_deactivate(service, account_ids):
    accounts = AccountRegistry(service.db)
    account_id = accounts.create("Courier Charges", "Expense", account_code="5950")

    assert accounts.get(account_id).account_name == "Courier Charges"
    assert service.validator.resolver().resolve("courier charges") == account_id

    accounts.set_active(account_id, False)
    assert account_id not in {account.account_id for account in accounts.list()}
    assert account_id in {account.account_id for account in accounts.list(active_only=False)}
    assert accounts.get(account_id).is_active is False


def test_inactive_account_is_not_matched_exactly(service, account_ids):
    AccountRegistry(service.db).set_active(account_ids["Petty Cash"], False)
    assert service.validator.resolver().resolve("Petty Cash") == account_ids["Cash"]


def test_account_type_is_checked(service):
    with pytest.raises(ValueError):
        AccountRegistry(service.db).create("Mystery", "Bucket")


def test_mapping_rule_update_and_delete(service, account_ids):
    rules = MappingRuleRegistry(service.db)
    rule_id = rules.create("electric", account_ids["Utilities Expense"])

    assert rules.update(rule_id, priority=4, auto_apply=False)
    rule = rules.get(rule_id)
    assert (rule.priority, rule.auto_apply, rule.account_name) == (4, False, "Utilities Expense")
    assert rule.legacy_text_pattern == "electric"

    assert rules.delete(rule_id)
    assert rules.get(rule_id) is None
    assert not rules.update(rule_id, priority=1)
    assert not rules.delete(rule_id)


def test_mapping_rule_validation(service):
    rules = MappingRuleRegistry(service.db)
    with pytest.raises(ValueError):
        rules.create("   ", 1)
    with pytest.raises(sqlite3.IntegrityError):
        rules.create("ghost", 424242)


def test_list_vouchers_can_filter_legacy(service, account_ids):
    vouchers = VoucherService(service.db)
    vouchers.create_voucher(
        "Debit",
        "2024-01-10",
        [
            VoucherEntry(account_id=account_ids["Office Supplies"], debit_amount=30.0),
            VoucherEntry(account_id=account_ids["Cash"], credit_amount=30.0),
        ],
    )
    result = service.import_content(
        "rows.json",
        '[{"date": "2024-01-11", "amount": 10, "debit_account": "Cash", "credit_account": "Sales Revenue"}]',
        "JSON",
    )
    batch_id = result["batch_id"]
    service.normalize_records(batch_id)
    service.validate_batch(batch_id)
    service.post_batch(batch_id)

    assert [v.voucher_number for v in vouchers.list_vouchers()] == ["LGC-2024-00001", "DBV-2024-00001"]
    [legacy] = vouchers.list_vouchers(legacy_only=True)
    assert legacy.voucher_type == "Journal"
    assert legacy.total_debit == legacy.total_credit == 10.0
