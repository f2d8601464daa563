from __future__ import annotations

import argparse
from typing import Optional

import boto3


def _alarm_name(prefix: str, name: str) -> str:
    return f"{prefix}-{name}"


def _alarm_actions(topic_arn: Optional[str]) -> list[str]:
    if not topic_arn:
        return []
    return [topic_arn]


def main() -> None:
    parser = argparse.ArgumentParser(description="Create CloudWatch alarms for stock-relay imports")
    parser.add_argument("--alarm-prefix", default="stock-relay", help="Alarm name prefix")
    parser.add_argument(
        "--namespace",
        default="StockRelay",
        help="CloudWatch namespace for custom metrics",
    )
    parser.add_argument("--sns-topic-arn", help="SNS topic ARN for alarm actions")
    parser.add_argument(
        "--failed-rows-threshold",
        type=int,
        default=1,
        help="Failed reconciliation rows that trigger the alarm",
    )
    parser.add_argument(
        "--failed-rows-period",
        type=int,
        default=300,
        help="Period in seconds for the failed rows alarm",
    )
    parser.add_argument(
        "--consecutive-rejection-threshold",
        type=int,
        default=3,
        help="Datapoints/evaluation periods for consecutive rejected imports",
    )
    parser.add_argument(
        "--consecutive-rejection-period",
        type=int,
        default=300,
        help="Period in seconds for the rejected imports alarm",
    )

    args = parser.parse_args()

    cloudwatch = boto3.client("cloudwatch")
    alarm_actions = _alarm_actions(args.sns_topic_arn)

    cloudwatch.put_metric_alarm(
        AlarmName=_alarm_name(args.alarm_prefix, "failed-rows"),
        AlarmDescription="Triggers when rows fail to apply to the catalog.",
        Namespace=args.namespace,
        MetricName="RowsFailed",
        Dimensions=[],
        Statistic="Sum",
        Period=args.failed_rows_period,
        EvaluationPeriods=1,
        DatapointsToAlarm=1,
        Threshold=args.failed_rows_threshold,
        ComparisonOperator="GreaterThanOrEqualToThreshold",
        TreatMissingData="notBreaching",
        AlarmActions=alarm_actions,
        OKActions=alarm_actions,
    )

    cloudwatch.put_metric_alarm(
        AlarmName=_alarm_name(args.alarm_prefix, "consecutive-rejections"),
        AlarmDescription=(
            "Triggers on consecutive imports rejected by validation. "
            "Metric is written as 1 for a rejected import and 0 for an accepted one."
        ),
        Namespace=args.namespace,
        MetricName="ImportRejected",
        Dimensions=[],
        Statistic="Maximum",
        Period=args.consecutive_rejection_period,
        EvaluationPeriods=args.consecutive_rejection_threshold,
        DatapointsToAlarm=args.consecutive_rejection_threshold,
        Threshold=1,
        ComparisonOperator="GreaterThanOrEqualToThreshold",
        TreatMissingData="notBreaching",
        AlarmActions=alarm_actions,
        OKActions=alarm_actions,
    )


if __name__ == "__main__":
    main()
