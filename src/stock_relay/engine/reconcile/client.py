"""Apply validated quantity deltas to the catalog.

Every input row produces exactly one outcome, in input order. A failure while resolving or
writing one row is converted into a failed outcome for that row and never stops its
siblings. Connectivity and authentication failures are systemic: once one is seen, rows
that have not started yet fail with the shared detail instead of issuing more calls.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import List, Literal, Optional, Sequence

from stock_relay.engine.canonical.models import (
    CatalogRecord,
    ImportRow,
    OutcomeStatus,
    ReconciliationOutcome,
    ReconciliationSummary,
    ValidationReport,
)
from stock_relay.engine.reconcile.catalog import CatalogGateway, CatalogIndex, SkuMatch
from stock_relay.engine.validation.rules import FIRST_DATA_LINE, parse_number
from stock_relay.util.errors import CatalogError, CatalogUnavailableError, ImportRejectedError
from stock_relay.util.logging import get_logger, log_event

DuplicateSkuPolicy = Literal["first", "reject"]

SKU_NOT_FOUND = "SKU not found in catalog"
SKU_AMBIGUOUS = "SKU matches multiple catalog records"
QUANTITY_NOT_WHOLE = "Quantity must be a whole number"
CANCELLED = "Import cancelled before this row was applied"


@dataclass
class ReconcileOptions:
    sku_match: SkuMatch = "exact"
    duplicate_sku_policy: DuplicateSkuPolicy = "first"
    max_concurrency: int = 4


def whole_quantity(value: str) -> int:
    number = parse_number(value)
    if number is None or number < 0:
        raise ValueError(f"invalid quantity: {value}")
    if number != number.to_integral_value():
        raise ValueError(QUANTITY_NOT_WHOLE)
    return int(number)


class _Batch:
    def __init__(self, index: CatalogIndex, cancel_event: Optional[threading.Event]) -> None:
        self.index = index
        self.cancel_event = cancel_event
        self.write_attempted = False
        self._systemic_detail: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    @property
    def systemic_detail(self) -> Optional[str]:
        with self._lock:
            return self._systemic_detail

    def mark_systemic(self, detail: str) -> None:
        with self._lock:
            if self._systemic_detail is None:
                self._systemic_detail = detail


def _failed(row: ImportRow, line: int, detail: str, record: Optional[CatalogRecord] = None) -> ReconciliationOutcome:
    return ReconciliationOutcome(
        sku=row.sku,
        status=OutcomeStatus.FAILED,
        line=line,
        record_id=record.id if record else None,
        error_detail=detail,
    )


class StockReconciler:
    def __init__(self, gateway: CatalogGateway, *, options: Optional[ReconcileOptions] = None) -> None:
        self.gateway = gateway
        self.options = options or ReconcileOptions()
        self.logger = get_logger(self.__class__.__name__)

    def reconcile(
        self,
        rows: Sequence[ImportRow],
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[ReconciliationOutcome]:
        rows = list(rows)
        if not rows:
            return []

        try:
            index = CatalogIndex.load(self.gateway, sku_match=self.options.sku_match)
        except Exception as exc:  # noqa: BLE001
            detail = f"Catalog unavailable: {exc}"
            log_event(self.logger, "catalog_unavailable", level=logging.WARNING, stage="load", error=str(exc))
            return [_failed(row, position + FIRST_DATA_LINE, detail) for position, row in enumerate(rows)]
        log_event(
            self.logger,
            "catalog_index_loaded",
            records=index.record_count,
            duplicate_skus=len(index.duplicate_skus()),
        )

        batch = _Batch(index, cancel_event)
        outcomes: List[Optional[ReconciliationOutcome]] = [None] * len(rows)

        # sequential until the first write attempt
        position = 0
        while position < len(rows) and not batch.write_attempted:
            outcomes[position] = self._apply_row(batch, rows[position], position + FIRST_DATA_LINE)
            position += 1

        if position < len(rows):
            max_workers = max(1, self.options.max_concurrency)
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = {
                    executor.submit(self._apply_row, batch, rows[offset], offset + FIRST_DATA_LINE): offset
                    for offset in range(position, len(rows))
                }
                for future in as_completed(futures):
                    outcomes[futures[future]] = future.result()

        results = [outcome for outcome in outcomes if outcome is not None]
        summary = ReconciliationSummary.from_outcomes(results)
        log_event(self.logger, "reconcile_completed", **summary.model_dump())
        return results

    def _apply_row(self, batch: _Batch, row: ImportRow, line: int) -> ReconciliationOutcome:
        if batch.cancelled:
            return ReconciliationOutcome(
                sku=row.sku,
                status=OutcomeStatus.SKIPPED,
                line=line,
                error_detail=CANCELLED,
            )
        systemic = batch.systemic_detail
        if systemic:
            return _failed(row, line, systemic)

        try:
            delta = whole_quantity(row.quantity_raw)
        except ValueError as exc:
            return self._log_failure(_failed(row, line, str(exc)))

        matches = batch.index.matches(row.sku)
        if not matches:
            return self._log_failure(_failed(row, line, SKU_NOT_FOUND))
        if len(matches) > 1 and self.options.duplicate_sku_policy == "reject":
            return self._log_failure(_failed(row, line, SKU_AMBIGUOUS))
        record = matches[0]

        with batch.index.lock_for(record):
            systemic = batch.systemic_detail
            if systemic:
                return _failed(row, line, systemic, record)
            previous = batch.index.current_quantity(record)
            new_quantity = previous + delta
            batch.write_attempted = True
            try:
                self._write(record, new_quantity)
            except CatalogUnavailableError as exc:
                batch.mark_systemic(f"Catalog unavailable: {exc}")
                log_event(self.logger, "catalog_unavailable", level=logging.WARNING, stage="write", error=str(exc))
                return self._log_failure(_failed(row, line, str(exc), record))
            except CatalogError as exc:
                return self._log_failure(_failed(row, line, str(exc), record))
            except Exception as exc:  # noqa: BLE001
                return self._log_failure(_failed(row, line, f"unexpected catalog error: {exc}", record))
            batch.index.record_write(record, new_quantity)

        log_event(
            self.logger,
            "reconcile_row_succeeded",
            sku=row.sku,
            line=line,
            record_id=record.id,
            previous_quantity=previous,
            new_quantity=new_quantity,
        )
        return ReconciliationOutcome(
            sku=row.sku,
            status=OutcomeStatus.SUCCEEDED,
            line=line,
            new_quantity=new_quantity,
            previous_quantity=previous,
            record_id=record.id,
        )

    def _write(self, record: CatalogRecord, quantity: int) -> CatalogRecord:
        if record.parent_id is not None:
            return self.gateway.update_variation_stock(record.parent_id, record.id, quantity)
        return self.gateway.update_product_stock(record.id, quantity)

    def _log_failure(self, outcome: ReconciliationOutcome) -> ReconciliationOutcome:
        log_event(
            self.logger,
            "reconcile_row_failed",
            level=logging.WARNING,
            sku=outcome.sku,
            line=outcome.line,
            error=outcome.error_detail,
        )
        return outcome


def reconcile(
    rows: Sequence[ImportRow],
    gateway: CatalogGateway,
    *,
    options: Optional[ReconcileOptions] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[ReconciliationOutcome]:
    return StockReconciler(gateway, options=options).reconcile(rows, cancel_event=cancel_event)


def reconcile_report(
    report: ValidationReport,
    gateway: CatalogGateway,
    *,
    options: Optional[ReconcileOptions] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[ReconciliationOutcome]:
    if not report.valid:
        raise ImportRejectedError(f"import has {report.issue_count} validation issues")
    return reconcile(report.rows, gateway, options=options, cancel_event=cancel_event)
