from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ImportRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    sku: str = ""
    quantity_raw: str = ""
    supplier: str = ""
    unit_cost_raw: str = ""


class ValidationIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: Optional[int] = Field(default=None, ge=2)
    message: str

    def display(self) -> str:
        if self.line is None:
            return self.message
        return f"Line {self.line}: {self.message}"


class ValidationReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    issues: List[ValidationIssue] = Field(default_factory=list)
    rows: List[ImportRow] = Field(default_factory=list)

    @model_validator(mode="after")
    def valid_matches_issues(self) -> "ValidationReport":
        if self.valid != (not self.issues):
            raise ValueError("valid must be true exactly when there are no issues")
        return self

    @classmethod
    def from_issues(cls, rows: List[ImportRow], issues: List[ValidationIssue]) -> "ValidationReport":
        return cls(valid=not issues, issues=list(issues), rows=list(rows))

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def issue_count(self) -> int:
        return len(self.issues)


class CatalogRecord(BaseModel):
    """A product or variation as the catalog reports it."""

    id: int
    sku: str = ""
    stock_quantity: Optional[int] = None
    manage_stock: bool = False
    parent_id: Optional[int] = None
    name: Optional[str] = None
    variation_ids: List[int] = Field(default_factory=list)

    @property
    def is_variation(self) -> bool:
        return self.parent_id is not None

    @property
    def key(self) -> tuple[Optional[int], int]:
        return (self.parent_id, self.id)

    @classmethod
    def from_woocommerce(cls, payload: Dict[str, Any], *, parent_id: Optional[int] = None) -> "CatalogRecord":
        return cls(
            id=payload["id"],
            sku=payload.get("sku") or "",
            stock_quantity=payload.get("stock_quantity"),
            manage_stock=bool(payload.get("manage_stock")),
            parent_id=parent_id,
            name=payload.get("name"),
            variation_ids=payload.get("variations") or [],
        )


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class ReconciliationOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    sku: str
    status: OutcomeStatus
    line: int
    new_quantity: Optional[int] = None
    previous_quantity: Optional[int] = None
    record_id: Optional[int] = None
    error_detail: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED


class ReconciliationSummary(BaseModel):
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: List[ReconciliationOutcome]) -> "ReconciliationSummary":
        counts = {status: 0 for status in OutcomeStatus}
        for outcome in outcomes:
            counts[outcome.status] += 1
        return cls(
            total=len(outcomes),
            succeeded=counts[OutcomeStatus.SUCCEEDED],
            failed=counts[OutcomeStatus.FAILED],
            skipped=counts[OutcomeStatus.SKIPPED],
        )


IMPORT_COLUMNS = ["SKU", "Quantity", "Supplier", "UnitCost"]

TEMPLATE_ROWS = [
    ["VDJ-001", "20", "Supplier A", "15.50"],
    ["SCN-002", "50", "Supplier B", "12.00"],
    ["FSD-003", "15", "Supplier C", "22.75"],
]

OUTCOME_COLUMNS = [
    "line",
    "sku",
    "status",
    "previous_quantity",
    "new_quantity",
    "error_detail",
]
