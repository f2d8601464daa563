import pytest
from pydantic import ValidationError

from stock_relay.engine.canonical.models import ImportRow, ValidationIssue, ValidationReport
from stock_relay.engine.parsing.delimited import parse_rows
from stock_relay.engine.validation.rules import (
    EMPTY_FILE_MESSAGE,
    QUANTITY_INVALID,
    QUANTITY_REQUIRED,
    SKU_REQUIRED,
    UNIT_COST_INVALID,
    parse_number,
    validate_rows,
)


def _row(sku: str = "A-1", quantity: str = "1", unit_cost: str = "") -> ImportRow:
    return ImportRow(sku=sku, quantity_raw=quantity, unit_cost_raw=unit_cost)


def test_valid_rows_produce_valid_report() -> None:
    rows = [_row("A-1", "5", "1.25"), _row("B-2", "0")]
    report = validate_rows(rows)
    assert report.valid
    assert report.issues == []
    assert report.rows == rows


@pytest.mark.parametrize("quantity", ["0", "5", " 7 ", "2.5", "1e2", ".5", "+3"])
def test_non_negative_quantities_are_accepted(quantity: str) -> None:
    assert validate_rows([_row(quantity=quantity)]).valid


@pytest.mark.parametrize("quantity", ["-1", "abc", "NaN", "Infinity", "1,5", "1_000", "\uff15", "\u0665"])
def test_invalid_quantities_fail_with_quantity_message(quantity: str) -> None:
    report = validate_rows([_row(quantity=quantity)])
    assert not report.valid
    assert report.issues == [ValidationIssue(line=2, message=QUANTITY_INVALID)]


def test_missing_quantity_is_required() -> None:
    report = validate_rows([_row(quantity="")])
    assert report.issues == [ValidationIssue(line=2, message=QUANTITY_REQUIRED)]


def test_whitespace_sku_is_required() -> None:
    report = validate_rows([_row(sku="   ")])
    assert report.issues == [ValidationIssue(line=2, message=SKU_REQUIRED)]


def test_unit_cost_checked_only_when_present() -> None:
    assert validate_rows([_row(unit_cost="")]).valid
    assert validate_rows([_row(unit_cost="0")]).valid
    report = validate_rows([_row(unit_cost="-3"), _row(unit_cost="cheap")])
    assert report.issues == [
        ValidationIssue(line=2, message=UNIT_COST_INVALID),
        ValidationIssue(line=3, message=UNIT_COST_INVALID),
    ]


def test_rules_accumulate_per_row() -> None:
    report = validate_rows([ImportRow(sku="", quantity_raw="x", unit_cost_raw="-1")])
    assert [issue.message for issue in report.issues] == [SKU_REQUIRED, QUANTITY_INVALID, UNIT_COST_INVALID]
    assert {issue.line for issue in report.issues} == {2}


def test_line_numbers_count_header_as_line_one() -> None:
    rows = [_row(), _row(), _row(sku="")]
    report = validate_rows(rows)
    assert report.issues == [ValidationIssue(line=4, message=SKU_REQUIRED)]


def test_invalid_rows_are_retained() -> None:
    text = "SKU,Quantity\nA-1,1\n,2\nC-3,-1\n"
    rows = parse_rows(text)
    report = validate_rows(rows)
    assert not report.valid
    assert report.row_count == 3
    assert [row.sku for row in report.rows] == ["A-1", "", "C-3"]


@pytest.mark.parametrize("text", ["SKU,Quantity,Supplier,UnitCost\n", ""])
def test_empty_file_is_invalid(text: str) -> None:
    report = validate_rows(parse_rows(text))
    assert not report.valid
    assert report.issues == [ValidationIssue(message=EMPTY_FILE_MESSAGE)]
    assert report.issues[0].line is None


def test_revalidation_is_idempotent() -> None:
    rows = parse_rows("SKU,Quantity\nA-1,x\n,3\nB-2,4\n")
    assert validate_rows(rows) == validate_rows(rows)


def test_report_rejects_inconsistent_verdict() -> None:
    with pytest.raises(ValidationError):
        ValidationReport(valid=True, issues=[ValidationIssue(line=2, message=SKU_REQUIRED)])


def test_issue_lines_start_at_two() -> None:
    with pytest.raises(ValidationError):
        ValidationIssue(line=1, message=SKU_REQUIRED)


def test_parse_number() -> None:
    assert parse_number(" 15.50 ") is not None
    assert parse_number("") is None
    assert parse_number("sNaN") is None
    assert parse_number("-Infinity") is None


def test_parse_number_accepts_only_ascii_decimal_notation() -> None:
    assert parse_number("1_000") is None
    assert parse_number("\uff11\uff12") is None
    assert parse_number("12") == 12
