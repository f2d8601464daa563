import sys
from pathlib import Path

import pytest
from freezegun import freeze_time

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from stock_relay.adapters.catalog.memory import InMemoryCatalog  # noqa: E402
from stock_relay.engine.canonical.models import CatalogRecord  # noqa: E402

DEFAULT_ENV = {
    "AWS_ACCESS_KEY_ID": "test-access-key",
    "AWS_SECRET_ACCESS_KEY": "test-secret-key",
    "AWS_SESSION_TOKEN": "test-session",
    "AWS_DEFAULT_REGION": "us-east-1",
    "CLOUDWATCH_METRICS_ENABLED": "false",
}

SCRUBBED_ENV = [
    "WOOCOMMERCE_STORE_URL",
    "WOOCOMMERCE_CONSUMER_KEY",
    "WOOCOMMERCE_CONSUMER_SECRET",
    "STOCK_RELAY_ARTIFACT_BUCKET",
    "STOCK_RELAY_CONFIG",
]


@pytest.fixture(scope="session")
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    for key, value in DEFAULT_ENV.items():
        monkeypatch.setenv(key, value)
    for key in SCRUBBED_ENV:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog(
        [
            CatalogRecord(id=1, sku="VDJ-001", stock_quantity=10, manage_stock=True),
            CatalogRecord(id=2, sku="SCN-002", stock_quantity=25, manage_stock=True),
            CatalogRecord(id=3, sku="FSD-003", stock_quantity=None),
            CatalogRecord(id=4, sku="", stock_quantity=7, variation_ids=[41, 42]),
            CatalogRecord(id=41, sku="TEE-S", stock_quantity=3, parent_id=4),
            CatalogRecord(id=42, sku="TEE-M", stock_quantity=0, parent_id=4),
        ]
    )


@pytest.fixture
def freezer():
    with freeze_time("2020-01-01T00:00:00Z") as frozen_datetime:
        yield frozen_datetime
