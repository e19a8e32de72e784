# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Load balancing and compute kinds."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field, StrictInt, StrictStr

from infrasynth.errors import ValidationError
from infrasynth.resources.aws._common import identifier_field, identifier_list, tags_field
from infrasynth.schema import BOOLEAN, INTEGER, LIST, STRING, Attributes, Schema, attribute, define, requires
from infrasynth.synthesis.resource import resource_kind

# ###############
# Public Interface
# ###############

INSTANCE_TYPE_PATTERN = (
    r"^(t2|t3|t3a|t4g|m5|m6i|m7i|c5|c6i|c7i|r5|r6i)\.(nano|micro|small|medium|large|xlarge|\d{1,2}xlarge)$"
)
DEFAULT_IMAGE_ID = "ami-0c02fb55956c7d316"

LOAD_BALANCER = define(
    "LoadBalancerAttributes",
    {
        "name": attribute(STRING, pattern=r"^[A-Za-z0-9-]{1,32}$"),
        "internal": attribute(BOOLEAN, default=False),
        "load_balancer_type": attribute(STRING, default="application", choices=["application", "network"]),
        "subnets": identifier_list(min_length=1),
        "security_groups": identifier_list(),
        "enable_deletion_protection": attribute(BOOLEAN, default=False),
        "idle_timeout": attribute(INTEGER, default=60, ge=1, le=4000),
        "tags": tags_field(),
    },
)

aws_lb = resource_kind(
    "aws_lb",
    LOAD_BALANCER,
    outputs=("id", "arn", "dns_name", "zone_id", "arn_suffix"),
    computed={"is_public": lambda attrs: not attrs.internal},
)

HEALTH_CHECK = define(
    "TargetGroupHealthCheck",
    {
        "path": attribute(STRING, default="/", pattern=r"^/"),
        "interval": attribute(INTEGER, default=30, ge=5, le=300),
        "healthy_threshold": attribute(INTEGER, default=3, ge=2, le=10),
        "unhealthy_threshold": attribute(INTEGER, default=3, ge=2, le=10),
        "matcher": attribute(STRING, default="200"),
    },
)

aws_lb_target_group = resource_kind(
    "aws_lb_target_group",
    define(
        "TargetGroupAttributes",
        {
            "name": attribute(STRING, pattern=r"^[A-Za-z0-9-]{1,32}$"),
            "port": attribute(INTEGER, ge=1, le=65535),
            "protocol": attribute(STRING, default="HTTP", choices=["HTTP", "HTTPS"]),
            "vpc_id": identifier_field(),
            "target_type": attribute(STRING, default="instance", choices=["instance", "ip"]),
            "health_check": attribute(HEALTH_CHECK, optional=True),
            "tags": tags_field(),
        },
    ),
    outputs=("id", "arn", "arn_suffix", "name"),
)


def _https_needs_certificate(attrs: Attributes) -> None:
    if attrs.protocol == "HTTPS" and not attrs.certificate_arn:
        raise ValidationError("certificate_arn", "required for HTTPS listeners")


def _action_has_target(action: Attributes) -> None:
    if action.type == "forward" and not action.target_group_arn:
        raise ValidationError("target_group_arn", "required for forward actions")
    if action.type == "redirect" and action.redirect is None:
        raise ValidationError("redirect", "required for redirect actions")


REDIRECT = define(
    "ListenerRedirect",
    {
        "port": attribute(STRING, default="443"),
        "protocol": attribute(STRING, default="HTTPS", choices=["HTTP", "HTTPS"]),
        "status_code": attribute(STRING, default="HTTP_301", choices=["HTTP_301", "HTTP_302"]),
    },
)

LISTENER_ACTION = define(
    "ListenerAction",
    {
        "type": attribute(STRING, choices=["forward", "redirect"]),
        "target_group_arn": attribute(STRING, optional=True),
        "redirect": attribute(REDIRECT, optional=True),
    },
    validators=[_action_has_target],
)

aws_lb_listener = resource_kind(
    "aws_lb_listener",
    define(
        "ListenerAttributes",
        {
            "load_balancer_arn": identifier_field(),
            "port": attribute(INTEGER, ge=1, le=65535),
            "protocol": attribute(STRING, default="HTTP", choices=["HTTP", "HTTPS"]),
            "ssl_policy": attribute(STRING, optional=True),
            "certificate_arn": attribute(STRING, optional=True),
            "default_action": attribute(LIST, items=LISTENER_ACTION, min_length=1),
        },
        validators=[_https_needs_certificate, requires("ssl_policy", "certificate_arn")],
    ),
    outputs=("id", "arn"),
)

aws_launch_template = resource_kind(
    "aws_launch_template",
    define(
        "LaunchTemplateAttributes",
        {
            "name_prefix": attribute(STRING, pattern=r"^[A-Za-z0-9_.()/-]{1,125}$"),
            "image_id": attribute(STRING, pattern=r"^(ami-[0-9a-f]{8,17}|\$\{.+\})$"),
            "instance_type": attribute(STRING, pattern=INSTANCE_TYPE_PATTERN),
            "vpc_security_group_ids": identifier_list(),
            "user_data": attribute(STRING, optional=True),
            "monitoring_enabled": attribute(BOOLEAN, default=False),
            "tags": tags_field(),
        },
    ),
    outputs=("id", "arn", "latest_version", "name"),
)


class LaunchTemplateSpecification(Attributes):
    """Launch template selection of an auto scaling group: by id or by name."""

    id: StrictStr | None = None
    name: StrictStr | None = None
    version: StrictStr = "$Latest"

    def check(self) -> None:
        if (self.id is None) == (self.name is None):
            raise ValidationError("", "exactly one of id, name must be set")


class AutoScalingGroupAttributes(Attributes):
    """Attributes of an auto scaling group.

    The desired capacity, when given, must lie within ``[min_size, max_size]``.
    """

    name: StrictStr | None = None
    min_size: Annotated[StrictInt, Field(ge=0)]
    max_size: Annotated[StrictInt, Field(ge=0)]
    desired_capacity: Annotated[StrictInt, Field(ge=0)] | None = None
    launch_template: LaunchTemplateSpecification
    vpc_zone_identifier: tuple[StrictStr, ...] = ()
    target_group_arns: tuple[StrictStr, ...] = ()
    health_check_type: Literal["EC2", "ELB"] = "EC2"
    health_check_grace_period: Annotated[StrictInt, Field(ge=0)] = 300
    tags: dict[str, StrictStr] = Field(default_factory=dict)

    def check(self) -> None:
        if self.min_size > self.max_size:
            raise ValidationError("min_size", f"min_size ({self.min_size}) exceeds max_size ({self.max_size})")
        if self.desired_capacity is not None and not self.min_size <= self.desired_capacity <= self.max_size:
            raise ValidationError(
                "desired_capacity",
                f"desired_capacity ({self.desired_capacity}) must be between {self.min_size} and {self.max_size}",
            )


aws_autoscaling_group = resource_kind(
    "aws_autoscaling_group",
    Schema.from_model(AutoScalingGroupAttributes),
    outputs=("id", "arn", "name"),
    computed={
        "effective_capacity": lambda attrs: (
            attrs.desired_capacity if attrs.desired_capacity is not None else attrs.min_size
        ),
        "uses_load_balancer_health": lambda attrs: attrs.health_check_type == "ELB",
    },
)
