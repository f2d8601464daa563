from stock_relay.engine.canonical.io import (
    outcomes_to_csv_bytes,
    read_csv_rows,
    summary_to_json,
    template_csv_bytes,
    write_csv_bytes,
)
from stock_relay.engine.canonical.models import OutcomeStatus, ReconciliationOutcome, ReconciliationSummary
from stock_relay.engine.parsing.delimited import parse_rows
from stock_relay.engine.validation.rules import validate_rows


def test_csv_output_round_trips_special_characters() -> None:
    rows = [{"sku": "SKU-1", "error_detail": 'Failed, "really"\nfailed'}]

    csv_bytes = write_csv_bytes(rows, ["sku", "error_detail"])

    assert csv_bytes.endswith(b"\n")
    assert read_csv_rows(csv_bytes) == rows


def test_outcomes_csv_keeps_input_order() -> None:
    outcomes = [
        ReconciliationOutcome(sku="B-2", status=OutcomeStatus.FAILED, line=2, error_detail="SKU not found in catalog"),
        ReconciliationOutcome(sku="A-1", status=OutcomeStatus.SUCCEEDED, line=3, previous_quantity=1, new_quantity=4),
    ]

    rows = read_csv_rows(outcomes_to_csv_bytes(outcomes))

    assert [row["sku"] for row in rows] == ["B-2", "A-1"]
    assert rows[0] == {
        "line": "2",
        "sku": "B-2",
        "status": "failed",
        "previous_quantity": "",
        "new_quantity": "",
        "error_detail": "SKU not found in catalog",
    }
    assert rows[1]["new_quantity"] == "4"


def test_outcomes_csv_is_deterministic() -> None:
    outcomes = [ReconciliationOutcome(sku="A-1", status=OutcomeStatus.SKIPPED, line=2, error_detail="Cancelled")]
    assert outcomes_to_csv_bytes(outcomes) == outcomes_to_csv_bytes(list(outcomes))


def test_template_is_a_valid_import() -> None:
    text = template_csv_bytes().decode("utf-8")

    assert text.splitlines()[0] == "SKU,Quantity,Supplier,UnitCost"
    report = validate_rows(parse_rows(text))
    assert report.valid
    assert [row.sku for row in report.rows] == ["VDJ-001", "SCN-002", "FSD-003"]


def test_summary_json_includes_import_id() -> None:
    summary = ReconciliationSummary(total=3, succeeded=2, failed=1)
    payload = summary_to_json(summary, import_id="abc", applied=True)
    assert '"import_id": "abc"' in payload
    assert '"failed": 1' in payload
