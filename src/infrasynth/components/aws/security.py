# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""The ``web_security_group`` component: layered security groups for a web tier."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from infrasynth.compose import AggregateReference, Composer
from infrasynth.registry import components
from infrasynth.resources.aws._common import cidr_field, identifier_field, tags_field
from infrasynth.resources.aws.naming import name_tags, resource_name
from infrasynth.resources.aws.network import ALLOW_ALL_EGRESS, WORLD_CIDR
from infrasynth.schema import BOOLEAN, INTEGER, LIST, attribute, define, requires
from infrasynth.synthesis.context import SynthesisContext

# ###############
# Public Interface
# ###############

WEB_SECURITY_GROUP = define(
    "WebSecurityGroupAttributes",
    {
        "vpc_id": identifier_field(),
        "allowed_cidr_blocks": attribute(LIST, items=cidr_field(), default=[WORLD_CIDR], min_length=1),
        "application_port": attribute(INTEGER, default=80, ge=1, le=65535),
        "enable_ssh": attribute(BOOLEAN, default=False),
        "ssh_cidr_blocks": attribute(LIST, items=cidr_field(), default=[]),
        "tags": tags_field(),
    },
    validators=[requires("enable_ssh", "ssh_cidr_blocks")],
)


@components.provider("web_security_group")
def web_security_group(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
    """Declare a load balancer group open to the allowed ranges and a web group reachable only from it."""
    composer = Composer(context, "web_security_group", name)
    attrs = composer.merge_attributes(WEB_SECURITY_GROUP, attributes)
    allowed = list(attrs.allowed_cidr_blocks)

    balancer_name = resource_name(name, "lb", limit=255)
    balancer = composer.declare(
        "load_balancer",
        "aws_security_group",
        {
            "name": balancer_name,
            "description": "Load balancer ingress",
            "vpc_id": attrs.vpc_id,
            "ingress": [
                {"from_port": 80, "to_port": 80, "cidr_blocks": allowed, "description": "HTTP"},
                {"from_port": 443, "to_port": 443, "cidr_blocks": allowed, "description": "HTTPS"},
            ],
            "egress": [ALLOW_ALL_EGRESS],
            "tags": name_tags(attrs.tags, balancer_name),
        },
    )

    ingress = [
        {
            "from_port": attrs.application_port,
            "to_port": attrs.application_port,
            "security_groups": [balancer.id],
            "description": "Application traffic from the load balancer",
        }
    ]
    if attrs.enable_ssh:
        ingress.append(
            {"from_port": 22, "to_port": 22, "cidr_blocks": list(attrs.ssh_cidr_blocks), "description": "SSH"}
        )
    web_name = resource_name(name, "web", limit=255)
    web = composer.declare(
        "web",
        "aws_security_group",
        {
            "name": web_name,
            "description": "Web server ingress",
            "vpc_id": attrs.vpc_id,
            "ingress": ingress,
            "egress": [ALLOW_ALL_EGRESS],
            "tags": name_tags(attrs.tags, web_name),
        },
    )

    composer.output("load_balancer_security_group_id", balancer.id)
    composer.output("web_security_group_id", web.id)
    composer.output("security_group_ids", [balancer.id, web.id])

    composer.computed("open_to_world", lambda aggregate: WORLD_CIDR in aggregate.attributes.allowed_cidr_blocks)
    composer.computed("ssh_enabled", lambda aggregate: aggregate.attributes.enable_ssh)
    return composer.finish()
