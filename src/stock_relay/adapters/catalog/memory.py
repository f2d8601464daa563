from __future__ import annotations

import csv
import threading
from typing import Dict, Iterable, List, Optional

from stock_relay.engine.canonical.models import CatalogRecord
from stock_relay.util.errors import CatalogRequestError


class InMemoryCatalog:
    """Catalog gateway backed by a dict, for offline runs and tests."""

    def __init__(self, records: Iterable[CatalogRecord] = ()) -> None:
        self._products: Dict[int, CatalogRecord] = {}
        self._variations: Dict[int, Dict[int, CatalogRecord]] = {}
        self._lock = threading.Lock()
        self.writes: List[tuple] = []
        for record in records:
            self.add(record)

    def __enter__(self) -> "InMemoryCatalog":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def add(self, record: CatalogRecord) -> None:
        if record.parent_id is None:
            self._products[record.id] = record
            return
        self._variations.setdefault(record.parent_id, {})[record.id] = record
        parent = self._products.get(record.parent_id)
        if parent and record.id not in parent.variation_ids:
            self._products[parent.id] = parent.model_copy(
                update={"variation_ids": [*parent.variation_ids, record.id]}
            )

    @classmethod
    def from_csv_text(cls, text: str) -> "InMemoryCatalog":
        reader = csv.DictReader(text.splitlines())
        records: List[CatalogRecord] = []
        for row in reader:
            parent = (row.get("parent_id") or "").strip()
            stock = (row.get("stock_quantity") or "").strip()
            records.append(
                CatalogRecord(
                    id=int(row["id"]),
                    sku=(row.get("sku") or "").strip(),
                    stock_quantity=int(stock) if stock else None,
                    manage_stock=bool(stock),
                    parent_id=int(parent) if parent else None,
                    name=row.get("name") or None,
                )
            )
        # parents first so variations can be linked to them
        records.sort(key=lambda record: record.parent_id is not None)
        return cls(records)

    def records(self) -> List[CatalogRecord]:
        with self._lock:
            records = list(self._products.values())
            for variations in self._variations.values():
                records.extend(variations.values())
        return records

    def get(self, record_id: int, parent_id: Optional[int] = None) -> Optional[CatalogRecord]:
        if parent_id is None:
            return self._products.get(record_id)
        return self._variations.get(parent_id, {}).get(record_id)

    def list_products(self) -> List[CatalogRecord]:
        with self._lock:
            return list(self._products.values())

    def list_variations(self, product_id: int) -> List[CatalogRecord]:
        with self._lock:
            return list(self._variations.get(product_id, {}).values())

    def update_product_stock(self, product_id: int, quantity: int) -> CatalogRecord:
        with self._lock:
            record = self._products.get(product_id)
            if record is None:
                raise CatalogRequestError(f"Failed to update product stock: product {product_id} not found", status_code=404)
            updated = record.model_copy(update={"stock_quantity": quantity, "manage_stock": True})
            self._products[product_id] = updated
            self.writes.append((None, product_id, quantity))
        return updated

    def update_variation_stock(self, product_id: int, variation_id: int, quantity: int) -> CatalogRecord:
        with self._lock:
            record = self._variations.get(product_id, {}).get(variation_id)
            if record is None:
                raise CatalogRequestError(
                    f"Failed to update variation stock: variation {variation_id} not found",
                    status_code=404,
                )
            updated = record.model_copy(update={"stock_quantity": quantity, "manage_stock": True})
            self._variations[product_id][variation_id] = updated
            self.writes.append((product_id, variation_id, quantity))
        return updated

    def test_connection(self) -> bool:
        return True
