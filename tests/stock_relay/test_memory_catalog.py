import pytest

from stock_relay.adapters.catalog.memory import InMemoryCatalog
from stock_relay.engine.canonical.models import CatalogRecord
from stock_relay.engine.reconcile.catalog import CatalogGateway, CatalogIndex
from stock_relay.util.errors import CatalogRequestError

CATALOG_CSV = """id,sku,stock_quantity,parent_id,name
11,TEE-S,3,10,Tee small
10,,,,Tee
1,VDJ-001,10,,Deck
"""


def test_from_csv_text_links_variations() -> None:
    catalog = InMemoryCatalog.from_csv_text(CATALOG_CSV)

    assert catalog.get(10).variation_ids == [11]
    assert catalog.get(11, parent_id=10).stock_quantity == 3
    assert catalog.get(1).manage_stock is True
    assert catalog.get(10).stock_quantity is None


def test_memory_catalog_is_a_gateway() -> None:
    assert isinstance(InMemoryCatalog(), CatalogGateway)


def test_index_loads_products_and_variations() -> None:
    index = CatalogIndex.load(InMemoryCatalog.from_csv_text(CATALOG_CSV))

    assert index.record_count == 3
    assert [record.id for record in index.matches("TEE-S")] == [11]
    assert index.matches("") == []


def test_index_case_insensitive_and_duplicates() -> None:
    records = [
        CatalogRecord(id=1, sku="Abc"),
        CatalogRecord(id=2, sku="ABC"),
    ]
    exact = CatalogIndex(records)
    insensitive = CatalogIndex(records, sku_match="case_insensitive")

    assert [record.id for record in exact.matches("abc")] == []
    assert [record.id for record in insensitive.matches("abc")] == [1, 2]
    assert insensitive.duplicate_skus() == ["abc"]
    assert exact.duplicate_skus() == []


def test_missing_record_update_raises() -> None:
    with pytest.raises(CatalogRequestError) as excinfo:
        InMemoryCatalog().update_product_stock(99, 1)
    assert excinfo.value.status_code == 404
