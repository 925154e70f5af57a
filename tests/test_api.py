import json

import pytest
from fastapi.testclient import TestClient

from ledger.api import app


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_scan_lists_supported_files(client, legacy_file):
    legacy_file("b.json", "[]")
    legacy_file("a.csv", "date,amount\n")
    legacy_file("readme.txt", "ignored")

    response = client.get("/legacy/files")

    assert response.status_code == 200
    assert [(item["name"], item["source_type"]) for item in response.json()] == [("a.csv", "CSV"), ("b.json", "JSON")]


def test_pipeline_over_http(client, legacy_file):
    rows = [
        {"date": "2024-03-01", "amount": "120", "debit_account": "Office Supplies", "credit_account": "Cash"},
        {"amount": "5"},
    ]
    path = legacy_file("rows.json", json.dumps(rows))

    imported = client.post("/legacy/batches", json={"path": str(path)})
    assert imported.status_code == 200
    batch_id = imported.json()["batch_id"]
    assert imported.json()["records_imported"] == 2

    assert client.post(f"/legacy/batches/{batch_id}/normalize").json()["normalized"] == 2
    validated = client.post(f"/legacy/batches/{batch_id}/validate").json()
    assert (validated["validated"], validated["failed"]) == (1, 1)
    posted = client.post(f"/legacy/batches/{batch_id}/post").json()
    assert posted["posted"] == 1
    assert posted["vouchers"][0]["voucher_number"].startswith("LGC-")

    [batch] = client.get("/legacy/batches").json()
    assert batch["status"] == "posted"
    records = client.get(f"/legacy/batches/{batch_id}/records").json()
    assert [record["status"] for record in records] == ["posted", "failed"]
    assert records[1]["validation_errors"] == ["Missing date", "No accounts could be mapped"]
    actions = [entry["action_taken"] for entry in client.get(f"/legacy/batches/{batch_id}/audit").json()]
    assert actions[0] == "BATCH_POSTED"
    assert actions[-1] == "BATCH_IMPORTED"


def test_import_errors_are_bad_requests(client, legacy_file):
    path = legacy_file("book.xlsx", "binary")
    response = client.post("/legacy/batches", json={"path": str(path)})
    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported file type. Use CSV or JSON."


def test_unknown_batch_is_bad_request(client):
    response = client.post("/legacy/batches/77/normalize")
    assert response.status_code == 400
    assert response.json()["detail"] == "Batch 77 not found"


def test_mapping_rules_round_trip(client):
    created = client.post(
        "/legacy/rules", json={"legacy_text_pattern": "landlord", "mapped_account_id": 1, "priority": 3}
    )
    assert created.status_code == 200

    [rule] = client.get("/legacy/rules").json()
    assert rule["rule_id"] == created.json()["rule_id"]
    assert rule["account_name"] == "Cash"
    assert rule["auto_apply"] is True

    missing = client.post("/legacy/rules", json={"legacy_text_pattern": "x", "mapped_account_id": 9999})
    assert missing.status_code == 400
