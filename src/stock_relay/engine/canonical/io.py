from __future__ import annotations

import csv
import io
import json
from typing import Iterable, List, Sequence

from stock_relay.engine.canonical.models import (
    IMPORT_COLUMNS,
    OUTCOME_COLUMNS,
    TEMPLATE_ROWS,
    ReconciliationOutcome,
    ReconciliationSummary,
    ValidationReport,
)


def _outcome_row(outcome: ReconciliationOutcome) -> dict:
    return {
        "line": outcome.line,
        "sku": outcome.sku,
        "status": outcome.status.value,
        "previous_quantity": outcome.previous_quantity,
        "new_quantity": outcome.new_quantity,
        "error_detail": outcome.error_detail,
    }


def write_csv_bytes(rows: Iterable[dict], fieldnames: Sequence[str]) -> bytes:
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=fieldnames,
        extrasaction="raise",
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\n",
    )
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue().encode("utf-8")


def outcomes_to_csv_bytes(outcomes: Iterable[ReconciliationOutcome]) -> bytes:
    # outcomes keep input order; no sorting here
    return write_csv_bytes((_outcome_row(outcome) for outcome in outcomes), OUTCOME_COLUMNS)


def template_csv_bytes() -> bytes:
    lines: List[str] = [",".join(IMPORT_COLUMNS)]
    lines.extend(",".join(row) for row in TEMPLATE_ROWS)
    return ("\n".join(lines) + "\n").encode("utf-8")


def report_to_json(report: ValidationReport) -> str:
    return json.dumps(report.model_dump(mode="json"), indent=2)


def summary_to_json(summary: ReconciliationSummary, *, import_id: str, applied: bool) -> str:
    payload = {"import_id": import_id, "applied": applied, **summary.model_dump()}
    return json.dumps(payload, indent=2)


def read_csv_rows(bytes_blob: bytes) -> list[dict]:
    buffer = io.StringIO(bytes_blob.decode("utf-8"))
    reader = csv.DictReader(buffer)
    return list(reader)
