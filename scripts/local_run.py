#!/usr/bin/env python
from __future__ import annotations

import argparse
import csv
import sys
from pathlib import Path

from stock_relay.adapters.catalog.memory import InMemoryCatalog
from stock_relay.app.config.loader import load_app_config
from stock_relay.engine.canonical.io import outcomes_to_csv_bytes
from stock_relay.engine.run import decode_import_bytes, run_import
from stock_relay.engine.validation.report import display_issues, summary_line

CATALOG_COLUMNS = ["id", "sku", "stock_quantity", "parent_id", "name"]


def write_catalog(path: Path, catalog: InMemoryCatalog) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=CATALOG_COLUMNS)
        writer.writeheader()
        for record in catalog.records():
            writer.writerow(
                {
                    "id": record.id,
                    "sku": record.sku,
                    "stock_quantity": record.stock_quantity,
                    "parent_id": record.parent_id,
                    "name": record.name,
                }
            )


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a stock import against a catalog CSV")
    parser.add_argument("--config", help="Path to stock-relay config YAML")
    parser.add_argument("--catalog", required=True, help="Catalog CSV (id,sku,stock_quantity,parent_id)")
    parser.add_argument("--file", required=True, help="Import file to apply")
    parser.add_argument("--output-dir", default="outputs")
    args = parser.parse_args()

    config = load_app_config(args.config)
    catalog = InMemoryCatalog.from_csv_text(Path(args.catalog).read_text(encoding="utf-8"))
    text = decode_import_bytes(
        Path(args.file).read_bytes(),
        encoding=config.parser.encoding,
        source=args.file,
    )

    result = run_import(text=text, config=config, gateway=catalog)
    print(summary_line(result.report))
    for line in display_issues(result.report, config.report.display_limit):
        print(f"  {line}")
    if not result.applied:
        return 1

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "outcomes.csv").write_bytes(outcomes_to_csv_bytes(result.outcomes))
    write_catalog(output_dir / "catalog.csv", catalog)
    summary = result.summary
    print(f"Applied {summary.succeeded}/{summary.total} rows ({summary.failed} failed)")
    return 0 if summary.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
