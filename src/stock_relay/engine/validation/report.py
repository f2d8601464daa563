from __future__ import annotations

from typing import List

from stock_relay.engine.canonical.models import ValidationReport

DEFAULT_DISPLAY_LIMIT = 5


def display_issues(report: ValidationReport, limit: int = DEFAULT_DISPLAY_LIMIT) -> List[str]:
    """Render the first ``limit`` issues; the report keeps the full list."""
    lines = [issue.display() for issue in report.issues[:limit]]
    remaining = report.issue_count - limit
    if remaining > 0:
        lines.append(f"... and {remaining} more errors")
    return lines


def summary_line(report: ValidationReport) -> str:
    if report.valid:
        return f"Validation successful! Found {report.row_count} valid rows."
    return f"Validation failed with {report.issue_count} errors:"
