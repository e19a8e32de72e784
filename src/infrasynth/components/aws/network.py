# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""The ``secure_vpc`` component: a VPC with public and private subnets per availability zone.

Subnet ranges are carved from the VPC range in order: one public subnet per
zone first, then one private subnet per zone. Public subnets route to an
internet gateway; private subnets have no route out of the VPC.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from infrasynth.compose import AggregateReference, Composer
from infrasynth.errors import ValidationError
from infrasynth.registry import components
from infrasynth.resources.aws._common import cidr_field, tags_field
from infrasynth.resources.aws.naming import name_tags, resource_name
from infrasynth.resources.aws.network import AVAILABILITY_ZONE_PATTERN, WORLD_CIDR, subnet_cidrs
from infrasynth.schema import BOOLEAN, INTEGER, LIST, STRING, Attributes, attribute, define
from infrasynth.synthesis.context import SynthesisContext

# ###############
# Public Interface
# ###############


def _subnets_fit(attrs: Attributes) -> None:
    try:
        subnet_cidrs(attrs.cidr_block, 2 * len(attrs.availability_zones), prefix=attrs.subnet_prefix)
    except ValueError as exc:
        raise ValidationError("subnet_prefix", str(exc)) from exc


SECURE_VPC = define(
    "SecureVpcAttributes",
    {
        "cidr_block": cidr_field(default="10.0.0.0/16"),
        "availability_zones": attribute(
            LIST, items=attribute(STRING, pattern=AVAILABILITY_ZONE_PATTERN), min_length=1, max_length=6
        ),
        "subnet_prefix": attribute(INTEGER, default=24, ge=16, le=28),
        "enable_dns_hostnames": attribute(BOOLEAN, default=True),
        "tags": tags_field(),
    },
    validators=[_subnets_fit],
)


@components.provider("secure_vpc")
def secure_vpc(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
    """Declare a VPC with an internet gateway and public/private subnets in every zone."""
    composer = Composer(context, "secure_vpc", name)
    attrs = composer.merge_attributes(SECURE_VPC, attributes)
    zones = attrs.availability_zones
    cidrs = subnet_cidrs(attrs.cidr_block, 2 * len(zones), prefix=attrs.subnet_prefix)

    vpc = composer.declare(
        "vpc",
        "aws_vpc",
        {
            "cidr_block": attrs.cidr_block,
            "enable_dns_hostnames": attrs.enable_dns_hostnames,
            "tags": name_tags(attrs.tags, resource_name(name, "vpc", limit=255)),
        },
    )
    gateway = composer.declare(
        "internet_gateway",
        "aws_internet_gateway",
        {"vpc_id": vpc.id, "tags": name_tags(attrs.tags, resource_name(name, "igw", limit=255))},
    )

    public = []
    for index, zone in enumerate(zones):
        public.append(
            composer.declare(
                f"public_{index}",
                "aws_subnet",
                {
                    "vpc_id": vpc.id,
                    "cidr_block": cidrs[index],
                    "availability_zone": zone,
                    "map_public_ip_on_launch": True,
                    "tags": {**name_tags(attrs.tags, resource_name(name, "public", zone, limit=255)), "Tier": "public"},
                },
            )
        )
    private = []
    for index, zone in enumerate(zones):
        private.append(
            composer.declare(
                f"private_{index}",
                "aws_subnet",
                {
                    "vpc_id": vpc.id,
                    "cidr_block": cidrs[len(zones) + index],
                    "availability_zone": zone,
                    "tags": {
                        **name_tags(attrs.tags, resource_name(name, "private", zone, limit=255)),
                        "Tier": "private",
                    },
                },
            )
        )

    routes = composer.declare(
        "public_routes",
        "aws_route_table",
        {
            "vpc_id": vpc.id,
            "route": [{"cidr_block": WORLD_CIDR, "gateway_id": gateway.id}],
            "tags": name_tags(attrs.tags, resource_name(name, "public-routes", limit=255)),
        },
    )
    for index, subnet in enumerate(public):
        composer.declare(
            f"public_{index}_routes",
            "aws_route_table_association",
            {"subnet_id": subnet.id, "route_table_id": routes.id},
        )

    composer.output("vpc_id", vpc.id)
    composer.output("vpc_cidr", attrs.cidr_block)
    composer.output("internet_gateway_id", gateway.id)
    composer.output("public_subnet_ids", [subnet.id for subnet in public])
    composer.output("private_subnet_ids", [subnet.id for subnet in private])
    composer.output("availability_zones", list(zones))

    composer.computed("availability_zone_count", _zone_count)
    composer.computed("is_highly_available", lambda aggregate: _zone_count(aggregate) >= 2)
    return composer.finish()


# ################
# Implementation
# ################


def _zone_count(aggregate: AggregateReference) -> int:
    return len(aggregate.attributes.availability_zones)
