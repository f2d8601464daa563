from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence

from stock_relay.engine.canonical.models import ImportRow, ValidationIssue, ValidationReport

FIRST_DATA_LINE = 2

EMPTY_FILE_MESSAGE = "CSV file is empty or has no valid data rows."
SKU_REQUIRED = "SKU is required."
QUANTITY_REQUIRED = "Quantity is required."
QUANTITY_INVALID = "Quantity must be a positive number."
UNIT_COST_INVALID = "Unit cost must be a positive number."

_NUMBER = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def parse_number(value: str) -> Optional[Decimal]:
    """Parse a finite decimal, or return None when the text is not a number."""
    stripped = value.strip()
    if not _NUMBER.fullmatch(stripped):
        return None
    try:
        number = Decimal(stripped)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number


def _is_non_negative(value: str) -> bool:
    number = parse_number(value)
    return number is not None and number >= 0


def validate_row(row: ImportRow, line: int) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []

    if not row.sku.strip():
        issues.append(ValidationIssue(line=line, message=SKU_REQUIRED))

    if not row.quantity_raw.strip():
        issues.append(ValidationIssue(line=line, message=QUANTITY_REQUIRED))
    elif not _is_non_negative(row.quantity_raw):
        issues.append(ValidationIssue(line=line, message=QUANTITY_INVALID))

    # unit cost is optional; only a present value is checked
    if row.unit_cost_raw.strip() and not _is_non_negative(row.unit_cost_raw):
        issues.append(ValidationIssue(line=line, message=UNIT_COST_INVALID))

    return issues


def validate_rows(rows: Sequence[ImportRow]) -> ValidationReport:
    issues: List[ValidationIssue] = []
    if not rows:
        issues.append(ValidationIssue(message=EMPTY_FILE_MESSAGE))

    for index, row in enumerate(rows):
        issues.extend(validate_row(row, index + FIRST_DATA_LINE))

    return ValidationReport.from_issues(list(rows), issues)
