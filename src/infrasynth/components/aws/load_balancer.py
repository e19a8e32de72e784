# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""The ``application_load_balancer`` component: an ALB, one target group, and its listeners."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from infrasynth.compose import AggregateReference, Composer
from infrasynth.registry import components
from infrasynth.resources.aws._common import identifier_field, identifier_list, tags_field
from infrasynth.resources.aws.naming import name_tags, resource_name
from infrasynth.schema import BOOLEAN, INTEGER, STRING, attribute, define
from infrasynth.synthesis.context import SynthesisContext

# ###############
# Public Interface
# ###############

DEFAULT_SSL_POLICY = "ELBSecurityPolicy-TLS13-1-2-2021-06"

APPLICATION_LOAD_BALANCER = define(
    "ApplicationLoadBalancerAttributes",
    {
        "vpc_id": identifier_field(),
        "subnet_ids": identifier_list(min_length=1),
        "security_group_ids": identifier_list(),
        "internal": attribute(BOOLEAN, default=False),
        "target_port": attribute(INTEGER, default=80, ge=1, le=65535),
        "health_check_path": attribute(STRING, default="/", pattern=r"^/"),
        "certificate_arn": attribute(STRING, optional=True, pattern=r"^arn:"),
        "enable_deletion_protection": attribute(BOOLEAN, default=False),
        "tags": tags_field(),
    },
)


@components.provider("application_load_balancer")
def application_load_balancer(
    context: SynthesisContext, name: str, attributes: Mapping[str, Any]
) -> AggregateReference:
    """Declare an application load balancer forwarding to one instance target group.

    With a certificate, port 80 redirects to an HTTPS listener on port 443;
    without one, port 80 forwards directly.
    """
    composer = Composer(context, "application_load_balancer", name)
    attrs = composer.merge_attributes(APPLICATION_LOAD_BALANCER, attributes)

    balancer_name = resource_name(name)
    balancer = composer.declare(
        "load_balancer",
        "aws_lb",
        {
            "name": balancer_name,
            "internal": attrs.internal,
            "subnets": list(attrs.subnet_ids),
            "security_groups": list(attrs.security_group_ids),
            "enable_deletion_protection": attrs.enable_deletion_protection,
            "tags": name_tags(attrs.tags, balancer_name),
        },
    )
    target_group = composer.declare(
        "target_group",
        "aws_lb_target_group",
        {
            "name": resource_name(name, "tg"),
            "port": attrs.target_port,
            "vpc_id": attrs.vpc_id,
            "health_check": {"path": attrs.health_check_path},
            "tags": attrs.tags,
        },
    )
    forward = {"type": "forward", "target_group_arn": target_group["arn"]}

    if attrs.certificate_arn:
        composer.declare(
            "http_listener",
            "aws_lb_listener",
            {
                "load_balancer_arn": balancer["arn"],
                "port": 80,
                "default_action": [{"type": "redirect", "redirect": {"port": "443", "protocol": "HTTPS"}}],
            },
        )
        composer.declare(
            "https_listener",
            "aws_lb_listener",
            {
                "load_balancer_arn": balancer["arn"],
                "port": 443,
                "protocol": "HTTPS",
                "ssl_policy": DEFAULT_SSL_POLICY,
                "certificate_arn": attrs.certificate_arn,
                "default_action": [forward],
            },
        )
    else:
        composer.declare(
            "http_listener",
            "aws_lb_listener",
            {"load_balancer_arn": balancer["arn"], "port": 80, "default_action": [forward]},
        )

    composer.output("load_balancer_arn", balancer["arn"])
    composer.output("load_balancer_arn_suffix", balancer["arn_suffix"])
    composer.output("dns_name", balancer["dns_name"])
    composer.output("zone_id", balancer["zone_id"])
    composer.output("target_group_arn", target_group["arn"])
    composer.output("target_group_arn_suffix", target_group["arn_suffix"])

    composer.computed("https_enabled", lambda aggregate: aggregate.has_member("https_listener"))
    composer.computed("listener_count", lambda aggregate: 2 if aggregate.has_member("https_listener") else 1)
    return composer.finish()
