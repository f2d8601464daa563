from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import List, Optional

from stock_relay.app.models.config import AppConfig
from stock_relay.engine.canonical.models import (
    ReconciliationOutcome,
    ReconciliationSummary,
    ValidationReport,
)
from stock_relay.engine.parsing.delimited import parse_rows
from stock_relay.engine.reconcile.catalog import CatalogGateway
from stock_relay.engine.reconcile.client import ReconcileOptions, reconcile_report
from stock_relay.engine.validation.rules import validate_rows
from stock_relay.util.logging import get_logger, log_event
from stock_relay.util.metrics import CloudWatchMetrics

SUPPORTED_ENCODINGS = {
    "utf-8": "utf-8-sig",
    "utf8": "utf-8-sig",
    "utf-8-sig": "utf-8-sig",
    "latin-1": "latin-1",
    "iso-8859-1": "latin-1",
    "iso8859-1": "latin-1",
}

logger = get_logger("stock_relay.engine")


class DecodeError(ValueError):
    def __init__(self, source: str, encoding: str, message: str) -> None:
        super().__init__(message)
        self.source = source
        self.encoding = encoding


@dataclass
class ImportResult:
    report: ValidationReport
    outcomes: List[ReconciliationOutcome] = field(default_factory=list)
    summary: Optional[ReconciliationSummary] = None
    applied: bool = False


def _normalize_encoding(encoding: str) -> str:
    normalized = encoding.strip().lower().replace("_", "-")
    return SUPPORTED_ENCODINGS.get(normalized, normalized)


def decode_import_bytes(raw_bytes: bytes, *, encoding: str = "utf-8", source: str = "upload") -> str:
    normalized = _normalize_encoding(encoding)
    if normalized not in set(SUPPORTED_ENCODINGS.values()):
        raise DecodeError(source, encoding, f"unsupported encoding '{encoding}' for {source}")
    try:
        return raw_bytes.decode(normalized)
    except UnicodeDecodeError as exc:
        raise DecodeError(source, encoding, str(exc)) from exc


def reconcile_options(config: AppConfig) -> ReconcileOptions:
    return ReconcileOptions(
        sku_match=config.reconcile.sku_match,
        duplicate_sku_policy=config.reconcile.duplicate_sku_policy,
        max_concurrency=config.reconcile.max_concurrency,
    )


def validate_import(text: str, config: AppConfig) -> ValidationReport:
    rows = parse_rows(text, delimiter=config.parser.delimiter)
    report = validate_rows(rows)
    log_event(
        logger,
        "import_validated",
        valid=report.valid,
        rows=report.row_count,
        issues=report.issue_count,
    )
    return report


def run_import(
    *,
    text: str,
    config: AppConfig,
    gateway: CatalogGateway,
    apply: bool = True,
    cancel_event: Optional[threading.Event] = None,
    metrics: Optional[CloudWatchMetrics] = None,
) -> ImportResult:
    report = validate_import(text, config)
    if metrics:
        metrics.record_validation(valid=report.valid, issue_count=report.issue_count)
    if not report.valid or not apply:
        return ImportResult(report=report)

    outcomes = reconcile_report(
        report,
        gateway,
        options=reconcile_options(config),
        cancel_event=cancel_event,
    )
    summary = ReconciliationSummary.from_outcomes(outcomes)
    if metrics:
        metrics.record_reconciliation(succeeded=summary.succeeded, failed=summary.failed)
    return ImportResult(report=report, outcomes=outcomes, summary=summary, applied=True)
