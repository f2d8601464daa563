import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from stock_relay.adapters.storage.s3 import S3Adapter
from stock_relay.app.api import app as api
from stock_relay.app.artifacts.writer import ImportArtifactWriter
from stock_relay.app.models.config import AppConfig

VALID_IMPORT = "SKU,Quantity,Supplier,UnitCost\nVDJ-001,5,Supplier A,15.50\nTEE-S,2,,\n"


@pytest.fixture()
def client(catalog):
    api.app.dependency_overrides[api.get_gateway] = lambda: catalog
    api.app.dependency_overrides[api.get_config] = lambda: AppConfig()
    api.app.dependency_overrides[api.get_artifact_writer] = lambda: None
    yield TestClient(api.app)
    api.app.dependency_overrides.clear()


def test_health(client) -> None:
    response = client.get("/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_template_download(client) -> None:
    response = client.get("/v1/imports/template")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "inventory_import_template.csv" in response.headers["content-disposition"]
    assert response.text.startswith("SKU,Quantity,Supplier,UnitCost\nVDJ-001,20,Supplier A,15.50\n")


def test_validate_reports_issues_without_writing(client, catalog) -> None:
    content = "SKU,Quantity\n" + "".join(f",{index}\n" for index in range(7))

    response = client.post("/v1/imports/validate", json={"content": content})

    assert response.status_code == 200
    body = response.json()
    assert body["report"]["valid"] is False
    assert len(body["report"]["issues"]) == 7
    assert body["summary"] == "Validation failed with 7 errors:"
    assert body["display"][0] == "Line 2: SKU is required."
    assert body["display"][-1] == "... and 2 more errors"
    assert catalog.writes == []


def test_validate_empty_file(client) -> None:
    body = client.post("/v1/imports/validate", json={"content": "SKU,Quantity\n"}).json()
    assert body["report"]["issues"] == [{"line": None, "message": "CSV file is empty or has no valid data rows."}]


def test_apply_updates_catalog(client, catalog) -> None:
    response = client.post("/v1/imports/apply", json={"content": VALID_IMPORT, "filename": "supplier.csv"})

    assert response.status_code == 200
    body = response.json()
    assert body["summary"] == {"total": 2, "succeeded": 2, "failed": 0, "skipped": 0}
    assert [outcome["new_quantity"] for outcome in body["outcomes"]] == [15, 5]
    assert body["artifacts"] == {}
    assert catalog.get(41, parent_id=4).stock_quantity == 5


def test_apply_rejects_invalid_file(client, catalog) -> None:
    response = client.post("/v1/imports/apply", json={"content": "SKU,Quantity\nVDJ-001,abc\n"})

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["display"] == ["Line 2: Quantity must be a positive number."]
    assert detail["report"]["valid"] is False
    assert catalog.writes == []


def test_apply_returns_failed_rows(client) -> None:
    body = client.post("/v1/imports/apply", json={"content": "SKU,Quantity\nNOPE,1\n"}).json()
    assert body["outcomes"][0]["status"] == "failed"
    assert body["outcomes"][0]["error_detail"] == "SKU not found in catalog"


def test_apply_publishes_artifacts(client) -> None:
    with mock_aws():
        boto3.client("s3", region_name="us-east-1").create_bucket(Bucket="artifacts")
        writer = ImportArtifactWriter(S3Adapter("artifacts"))
        api.app.dependency_overrides[api.get_artifact_writer] = lambda: writer

        body = client.post("/v1/imports/apply", json={"content": VALID_IMPORT}).json()

    assert set(body["artifacts"]) == {"validation_report", "summary", "outcomes"}
    assert body["import_id"] in body["artifacts"]["outcomes"]


def test_catalog_connection(client) -> None:
    response = client.get("/v1/catalog/connection")
    assert response.json() == {"connected": True, "catalog_type": "memory"}
