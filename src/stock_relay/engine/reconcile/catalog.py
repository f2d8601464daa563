from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Literal, Optional, Protocol, Tuple, runtime_checkable

from stock_relay.engine.canonical.models import CatalogRecord

SkuMatch = Literal["exact", "case_insensitive"]

RecordKey = Tuple[Optional[int], int]


@runtime_checkable
class CatalogGateway(Protocol):
    """Read/write contract of the remote catalog.

    Implementations raise ``CatalogUnavailableError`` for connectivity or authentication
    failures and ``CatalogRequestError`` when the store rejects a single request.
    """

    def list_products(self) -> List[CatalogRecord]:
        ...

    def list_variations(self, product_id: int) -> List[CatalogRecord]:
        ...

    def update_product_stock(self, product_id: int, quantity: int) -> CatalogRecord:
        ...

    def update_variation_stock(self, product_id: int, variation_id: int, quantity: int) -> CatalogRecord:
        ...


def normalize_sku(sku: str, sku_match: SkuMatch) -> str:
    stripped = sku.strip()
    if sku_match == "case_insensitive":
        return stripped.casefold()
    return stripped


class CatalogIndex:
    """SKU lookup over one catalog snapshot, plus the stock written during the batch."""

    def __init__(self, records: Iterable[CatalogRecord], *, sku_match: SkuMatch = "exact") -> None:
        self.sku_match = sku_match
        self._by_sku: Dict[str, List[CatalogRecord]] = {}
        self._quantities: Dict[RecordKey, int] = {}
        self._locks: Dict[RecordKey, threading.Lock] = {}
        self._guard = threading.Lock()
        self.record_count = 0
        for record in records:
            self.record_count += 1
            self._quantities[record.key] = record.stock_quantity or 0
            if not record.sku.strip():
                continue
            self._by_sku.setdefault(normalize_sku(record.sku, sku_match), []).append(record)

    @classmethod
    def load(cls, gateway: CatalogGateway, *, sku_match: SkuMatch = "exact") -> "CatalogIndex":
        products = gateway.list_products()
        records: List[CatalogRecord] = list(products)
        for product in products:
            if product.variation_ids:
                records.extend(gateway.list_variations(product.id))
        return cls(records, sku_match=sku_match)

    def matches(self, sku: str) -> List[CatalogRecord]:
        return list(self._by_sku.get(normalize_sku(sku, self.sku_match), []))

    def duplicate_skus(self) -> List[str]:
        return sorted(sku for sku, records in self._by_sku.items() if len(records) > 1)

    def lock_for(self, record: CatalogRecord) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(record.key, threading.Lock())

    def current_quantity(self, record: CatalogRecord) -> int:
        return self._quantities.get(record.key, record.stock_quantity or 0)

    def record_write(self, record: CatalogRecord, quantity: int) -> None:
        self._quantities[record.key] = quantity
