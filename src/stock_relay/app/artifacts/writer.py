from __future__ import annotations

from typing import Dict

from botocore.exceptions import BotoCoreError, ClientError

from stock_relay.adapters.storage.s3 import S3Adapter
from stock_relay.engine.canonical.io import outcomes_to_csv_bytes, report_to_json, summary_to_json
from stock_relay.engine.canonical.models import ReconciliationSummary
from stock_relay.engine.run import ImportResult
from stock_relay.util.logging import get_logger, log_event


class ImportArtifactWriter:
    """Exports the reports of one import session to S3."""

    def __init__(self, s3: S3Adapter, *, prefix: str = "imports") -> None:
        self.s3 = s3
        self.prefix = prefix.strip("/")
        self.logger = get_logger(self.__class__.__name__)

    def import_prefix(self, import_id: str) -> str:
        return f"{self.prefix}/{import_id}"

    def _ensure_import_prefix(self, *, import_id: str, key: str) -> None:
        if not key.startswith(f"{self.import_prefix(import_id)}/"):
            raise ValueError(f"artifact key must be under {self.import_prefix(import_id)}/ prefix: {key}")

    def _key(self, import_id: str, name: str) -> str:
        key = f"{self.import_prefix(import_id)}/{name}"
        self._ensure_import_prefix(import_id=import_id, key=key)
        return key

    def write(self, import_id: str, result: ImportResult) -> Dict[str, str]:
        """Upload the report files and return their keys by artifact name.

        Upload failures are logged and leave the artifact out of the returned mapping; the
        import itself has already happened and its outcome is not affected.
        """
        artifacts: Dict[str, str] = {}
        summary = result.summary or ReconciliationSummary()
        uploads = [
            ("validation_report", "validation_report.json", report_to_json(result.report).encode("utf-8"), "application/json"),
            (
                "summary",
                "summary.json",
                summary_to_json(summary, import_id=import_id, applied=result.applied).encode("utf-8"),
                "application/json",
            ),
        ]
        if result.applied:
            uploads.append(("outcomes", "outcomes.csv", outcomes_to_csv_bytes(result.outcomes), "text/csv"))

        for name, filename, body, content_type in uploads:
            key = self._key(import_id, filename)
            try:
                self.s3.upload_bytes(key, body, content_type=content_type)
            except (BotoCoreError, ClientError) as exc:
                log_event(self.logger, "artifact_upload_failed", import_id=import_id, key=key, error=str(exc))
                continue
            artifacts[name] = key

        log_event(self.logger, "artifacts_written", import_id=import_id, artifacts=artifacts)
        return artifacts
