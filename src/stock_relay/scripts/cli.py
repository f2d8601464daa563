from __future__ import annotations

import argparse
import sys
import uuid
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from stock_relay.adapters.catalog.factory import build_gateway
from stock_relay.adapters.storage.s3 import S3Adapter
from stock_relay.app.artifacts.writer import ImportArtifactWriter
from stock_relay.app.config.loader import load_app_config
from stock_relay.app.models.config import AppConfig
from stock_relay.engine.canonical.io import outcomes_to_csv_bytes, template_csv_bytes
from stock_relay.engine.canonical.models import OutcomeStatus, ValidationReport
from stock_relay.engine.run import (
    DecodeError,
    ImportResult,
    decode_import_bytes,
    run_import,
    validate_import,
)
from stock_relay.engine.validation.report import display_issues, summary_line
from stock_relay.util.errors import ConfigError
from stock_relay.util.metrics import CloudWatchMetrics


def _read_import(path: str, config: AppConfig) -> str:
    return decode_import_bytes(Path(path).read_bytes(), encoding=config.parser.encoding, source=path)


def _print_report(report: ValidationReport, config: AppConfig) -> None:
    print(summary_line(report))
    for line in display_issues(report, config.report.display_limit):
        print(f"  {line}")


def _print_outcomes(result: ImportResult) -> None:
    for outcome in result.outcomes:
        if outcome.status is OutcomeStatus.SUCCEEDED:
            print(f"  {outcome.sku}: {outcome.previous_quantity} -> {outcome.new_quantity}")
        else:
            print(f"  {outcome.sku}: {outcome.status.value} ({outcome.error_detail})")
    summary = result.summary
    if summary:
        print(
            f"Updated {summary.succeeded} of {summary.total} rows: "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )


def cmd_validate(args: argparse.Namespace, config: AppConfig) -> int:
    report = validate_import(_read_import(args.file, config), config)
    _print_report(report, config)
    return 0 if report.valid else 1


def cmd_apply(args: argparse.Namespace, config: AppConfig) -> int:
    text = _read_import(args.file, config)
    with build_gateway(config.catalog) as gateway:
        result = run_import(
            text=text,
            config=config,
            gateway=gateway,
            metrics=CloudWatchMetrics.from_env(),
        )
    _print_report(result.report, config)
    import_id = str(uuid.uuid4())
    if config.report.artifact_bucket:
        writer = ImportArtifactWriter(S3Adapter(config.report.artifact_bucket), prefix=config.report.artifact_prefix)
        for name, key in writer.write(import_id, result).items():
            print(f"  {name}: s3://{config.report.artifact_bucket}/{key}")
    if not result.applied:
        return 1
    _print_outcomes(result)
    if args.output_dir:
        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        (output_dir / f"outcomes-{import_id}.csv").write_bytes(outcomes_to_csv_bytes(result.outcomes))
    return 0 if result.summary and result.summary.failed == 0 and result.summary.skipped == 0 else 1


def cmd_template(args: argparse.Namespace, config: AppConfig) -> int:
    data = template_csv_bytes()
    if args.output:
        Path(args.output).write_bytes(data)
    else:
        sys.stdout.write(data.decode("utf-8"))
    return 0


def cmd_check_connection(args: argparse.Namespace, config: AppConfig) -> int:
    with build_gateway(config.catalog) as gateway:
        connected = gateway.test_connection()
    print("connected" if connected else "not connected")
    return 0 if connected else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stock-relay", description="Supplier stock import for a WooCommerce catalog")
    parser.add_argument("--config", help="Path to stock-relay config YAML")
    commands = parser.add_subparsers(dest="command", required=True)

    validate = commands.add_parser("validate", help="Validate an import file without touching the catalog")
    validate.add_argument("file")
    validate.set_defaults(handler=cmd_validate)

    apply = commands.add_parser("apply", help="Validate an import file and add its quantities to catalog stock")
    apply.add_argument("file")
    apply.add_argument("--output-dir", help="Directory for the per-row outcome CSV")
    apply.set_defaults(handler=cmd_apply)

    template = commands.add_parser("template", help="Write the import file template")
    template.add_argument("--output", help="Destination path; stdout when omitted")
    template.set_defaults(handler=cmd_template)

    check = commands.add_parser("check-connection", help="Check the catalog credentials")
    check.set_defaults(handler=cmd_check_connection)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_app_config(args.config)
        return args.handler(args, config)
    except (ConfigError, DecodeError, ValidationError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
