from __future__ import annotations

import os
from typing import Any, Dict

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from stock_relay.util.logging import get_logger, log_event


class CloudWatchMetrics:
    def __init__(self, *, namespace: str, enabled: bool) -> None:
        self.namespace = namespace
        self.enabled = enabled
        self.client = boto3.client("cloudwatch") if enabled else None
        self.logger = get_logger(self.__class__.__name__)

    @classmethod
    def from_env(cls) -> "CloudWatchMetrics":
        enabled = os.getenv("CLOUDWATCH_METRICS_ENABLED", "false").lower() == "true"
        namespace = os.getenv("CLOUDWATCH_METRICS_NAMESPACE", "StockRelay")
        return cls(namespace=namespace, enabled=enabled)

    def _put_metric(
        self,
        *,
        name: str,
        value: float,
        unit: str = "Count",
    ) -> None:
        if not self.enabled or not self.client:
            return
        payload: Dict[str, Any] = {
            "MetricName": name,
            "Value": value,
            "Unit": unit,
        }
        try:
            self.client.put_metric_data(
                Namespace=self.namespace,
                MetricData=[payload],
            )
        except (BotoCoreError, ClientError) as exc:
            log_event(self.logger, "cloudwatch_metric_failed", error=str(exc), metric=name)

    def record_validation(self, *, valid: bool, issue_count: int) -> None:
        self._put_metric(name="ImportRejected", value=0.0 if valid else 1.0)
        if issue_count:
            self._put_metric(name="ValidationIssues", value=float(issue_count))

    def record_reconciliation(self, *, succeeded: int, failed: int) -> None:
        self._put_metric(name="RowsApplied", value=float(succeeded))
        self._put_metric(name="RowsFailed", value=float(failed))
