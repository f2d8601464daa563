from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from stock_relay.engine.canonical.models import (
    ReconciliationOutcome,
    ReconciliationSummary,
    ValidationReport,
)


class ImportRequest(BaseModel):
    content: str
    filename: Optional[str] = None


class ValidationResponse(BaseModel):
    report: ValidationReport
    summary: str
    display: List[str] = Field(default_factory=list)


class ImportResponse(BaseModel):
    import_id: str
    report: ValidationReport
    outcomes: List[ReconciliationOutcome]
    summary: ReconciliationSummary
    artifacts: Dict[str, str] = Field(default_factory=dict)


class ConnectionStatus(BaseModel):
    connected: bool
    catalog_type: str
