# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""CloudWatch alarm and dashboard kinds."""

from __future__ import annotations

import json

from infrasynth.errors import ValidationError
from infrasynth.resources.aws._common import tags_field
from infrasynth.schema import INTEGER, LIST, MAPPING, NUMBER, STRING, Attributes, attribute, define
from infrasynth.synthesis.resource import resource_kind

# ###############
# Public Interface
# ###############

COMPARISON_OPERATORS = (
    "GreaterThanOrEqualToThreshold",
    "GreaterThanThreshold",
    "LessThanThreshold",
    "LessThanOrEqualToThreshold",
)

STATISTICS = ("Average", "Sum", "Minimum", "Maximum", "SampleCount")


def _valid_period(period: int) -> bool:
    return period in (10, 30) or period % 60 == 0


aws_cloudwatch_metric_alarm = resource_kind(
    "aws_cloudwatch_metric_alarm",
    define(
        "MetricAlarmAttributes",
        {
            "alarm_name": attribute(STRING, min_length=1, max_length=255),
            "alarm_description": attribute(STRING, optional=True),
            "comparison_operator": attribute(STRING, choices=COMPARISON_OPERATORS),
            "evaluation_periods": attribute(INTEGER, ge=1),
            "metric_name": attribute(STRING, min_length=1),
            "namespace": attribute(STRING, pattern=r"^[A-Za-z0-9/_.#:-]+$"),
            "period": attribute(INTEGER, default=300, checks=[(_valid_period, "must be 10, 30 or a multiple of 60")]),
            "statistic": attribute(STRING, default="Average", choices=STATISTICS),
            "threshold": attribute(NUMBER),
            "dimensions": attribute(MAPPING, default={}),
            "alarm_actions": attribute(LIST, items=STRING, default=[]),
            "tags": tags_field(),
        },
    ),
    outputs=("id", "arn"),
)


def _valid_body(attrs: Attributes) -> None:
    try:
        body = json.loads(attrs.dashboard_body)
    except json.JSONDecodeError as exc:
        raise ValidationError("dashboard_body", f"not valid JSON: {exc.msg}") from exc
    if not isinstance(body, dict) or not isinstance(body.get("widgets"), list):
        raise ValidationError("dashboard_body", "must be a JSON object with a 'widgets' list")


def dashboard_body(widgets: list[dict]) -> str:
    """Serialize dashboard widgets into a dashboard body."""
    return json.dumps({"widgets": widgets}, separators=(",", ":"))


aws_cloudwatch_dashboard = resource_kind(
    "aws_cloudwatch_dashboard",
    define(
        "DashboardAttributes",
        {
            "dashboard_name": attribute(STRING, pattern=r"^[A-Za-z0-9_-]{1,255}$"),
            "dashboard_body": attribute(STRING),
        },
        validators=[_valid_body],
    ),
    outputs=("id", "dashboard_arn"),
    computed={"widget_count": lambda attrs: len(json.loads(attrs.dashboard_body)["widgets"])},
)
