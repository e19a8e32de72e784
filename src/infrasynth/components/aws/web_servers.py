# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""The ``auto_scaling_web_servers`` component: a launch template and an auto scaling group."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from infrasynth.compose import AggregateReference, Composer
from infrasynth.errors import ValidationError
from infrasynth.registry import components
from infrasynth.resources.aws._common import identifier_list, tags_field
from infrasynth.resources.aws.compute import DEFAULT_IMAGE_ID, INSTANCE_TYPE_PATTERN
from infrasynth.resources.aws.naming import name_tags, resource_name
from infrasynth.schema import BOOLEAN, INTEGER, STRING, Attributes, attribute, define, ordered
from infrasynth.synthesis.context import SynthesisContext

# ###############
# Public Interface
# ###############


def _desired_within_bounds(attrs: Attributes) -> None:
    desired = attrs.desired_capacity
    if desired is not None and not attrs.min_size <= desired <= attrs.max_size:
        raise ValidationError("desired_capacity", f"must be between {attrs.min_size} and {attrs.max_size}")


AUTO_SCALING_WEB_SERVERS = define(
    "AutoScalingWebServersAttributes",
    {
        "subnet_ids": identifier_list(min_length=1),
        "security_group_ids": identifier_list(),
        "target_group_arn": attribute(STRING, optional=True),
        "min_size": attribute(INTEGER, default=1, ge=0),
        "max_size": attribute(INTEGER, default=3, ge=1),
        "desired_capacity": attribute(INTEGER, optional=True, ge=0),
        "instance_type": attribute(STRING, default="t3.medium", pattern=INSTANCE_TYPE_PATTERN),
        "image_id": attribute(STRING, default=DEFAULT_IMAGE_ID, pattern=r"^ami-[0-9a-f]{8,17}$"),
        "user_data": attribute(STRING, optional=True),
        "detailed_monitoring": attribute(BOOLEAN, default=False),
        "tags": tags_field(),
    },
    validators=[ordered("min_size", "max_size"), _desired_within_bounds],
)


@components.provider("auto_scaling_web_servers")
def auto_scaling_web_servers(
    context: SynthesisContext, name: str, attributes: Mapping[str, Any]
) -> AggregateReference:
    """Declare a launch template and an auto scaling group registered with the target group."""
    composer = Composer(context, "auto_scaling_web_servers", name)
    attrs = composer.merge_attributes(AUTO_SCALING_WEB_SERVERS, attributes)

    template_name = resource_name(name, limit=125)
    template_attrs: dict[str, Any] = {
        "name_prefix": f"{template_name}-",
        "image_id": attrs.image_id,
        "instance_type": attrs.instance_type,
        "vpc_security_group_ids": list(attrs.security_group_ids),
        "monitoring_enabled": attrs.detailed_monitoring,
        "tags": name_tags(attrs.tags, template_name),
    }
    if attrs.user_data is not None:
        template_attrs["user_data"] = attrs.user_data
    template = composer.declare("launch_template", "aws_launch_template", template_attrs)

    group_attrs: dict[str, Any] = {
        "name": resource_name(name, "asg", limit=255),
        "min_size": attrs.min_size,
        "max_size": attrs.max_size,
        "desired_capacity": attrs.desired_capacity if attrs.desired_capacity is not None else attrs.min_size,
        "launch_template": {"id": template.id, "version": "$Latest"},
        "vpc_zone_identifier": list(attrs.subnet_ids),
        "tags": attrs.tags,
    }
    if attrs.target_group_arn:
        group_attrs["target_group_arns"] = [attrs.target_group_arn]
        group_attrs["health_check_type"] = "ELB"
    group = composer.declare("group", "aws_autoscaling_group", group_attrs)

    composer.output("autoscaling_group_name", group["name"])
    composer.output("autoscaling_group_arn", group["arn"])
    composer.output("launch_template_id", template.id)

    composer.computed("capacity", _capacity)
    composer.computed("load_balanced", lambda aggregate: aggregate.attributes.target_group_arn is not None)
    return composer.finish()


# ################
# Implementation
# ################


def _capacity(aggregate: AggregateReference) -> dict[str, int]:
    attrs = aggregate.attributes
    desired = attrs.desired_capacity if attrs.desired_capacity is not None else attrs.min_size
    return {"min": attrs.min_size, "desired": desired, "max": attrs.max_size}
