# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""VPC networking kinds: VPCs, subnets, gateways, route tables, and security groups."""

from __future__ import annotations

import ipaddress

from pydantic import StrictStr

from infrasynth.errors import ValidationError
from infrasynth.resources.aws._common import PORT_RANGE, cidr_field, identifier_field, identifier_list, tags_field
from infrasynth.schema import BOOLEAN, INTEGER, LIST, STRING, Attributes, Schema, attribute, define, ordered
from infrasynth.synthesis.resource import resource_kind

# ###############
# Public Interface
# ###############

WORLD_CIDR = "0.0.0.0/0"
AVAILABILITY_ZONE_PATTERN = r"^[a-z]{2}(-[a-z]+)+-\d[a-z]$"


def subnet_cidrs(vpc_cidr: str, count: int, *, prefix: int = 24) -> list[str]:
    """Carve the first *count* subnets of size ``/prefix`` out of *vpc_cidr*.

    Raises:
        ValueError: If the network is too small to hold *count* subnets.
    """
    network = ipaddress.ip_network(vpc_cidr)
    if prefix < network.prefixlen:
        raise ValueError(f"/{prefix} subnets do not fit into {vpc_cidr}")
    available = 2 ** (prefix - network.prefixlen)
    if count > available:
        raise ValueError(f"{vpc_cidr} holds only {available} /{prefix} subnets, {count} requested")
    subnets = network.subnets(new_prefix=prefix)
    return [str(next(subnets)) for _ in range(count)]


VPC = define(
    "VpcAttributes",
    {
        "cidr_block": cidr_field(),
        "enable_dns_hostnames": attribute(BOOLEAN, default=True),
        "enable_dns_support": attribute(BOOLEAN, default=True),
        "instance_tenancy": attribute(STRING, default="default", choices=["default", "dedicated"]),
        "tags": tags_field(),
    },
)

aws_vpc = resource_kind(
    "aws_vpc",
    VPC,
    outputs=("id", "arn", "cidr_block", "default_security_group_id", "main_route_table_id"),
    computed={
        "is_private_cidr": lambda attrs: ipaddress.ip_network(attrs.cidr_block).is_private,
        "address_count": lambda attrs: ipaddress.ip_network(attrs.cidr_block).num_addresses,
    },
    description="Virtual private cloud",
)

SUBNET = define(
    "SubnetAttributes",
    {
        "vpc_id": identifier_field(),
        "cidr_block": cidr_field(),
        "availability_zone": attribute(STRING, pattern=AVAILABILITY_ZONE_PATTERN),
        "map_public_ip_on_launch": attribute(BOOLEAN, default=False),
        "tags": tags_field(),
    },
)

aws_subnet = resource_kind(
    "aws_subnet",
    SUBNET,
    outputs=("id", "arn", "availability_zone", "cidr_block"),
    computed={"is_public": lambda attrs: attrs.map_public_ip_on_launch},
)

aws_internet_gateway = resource_kind(
    "aws_internet_gateway",
    define("InternetGatewayAttributes", {"vpc_id": identifier_field(), "tags": tags_field()}),
    outputs=("id", "arn"),
)


class RouteAttributes(Attributes):
    """One route of a route table. Exactly one target must be given."""

    cidr_block: StrictStr
    gateway_id: StrictStr | None = None
    nat_gateway_id: StrictStr | None = None

    def check(self) -> None:
        targets = [target for target in (self.gateway_id, self.nat_gateway_id) if target]
        if len(targets) != 1:
            raise ValidationError("", "a route needs exactly one of gateway_id, nat_gateway_id")


aws_route_table = resource_kind(
    "aws_route_table",
    define(
        "RouteTableAttributes",
        {
            "vpc_id": identifier_field(),
            "route": attribute(LIST, items=Schema.from_model(RouteAttributes), default=[]),
            "tags": tags_field(),
        },
    ),
    outputs=("id", "arn"),
)

aws_route_table_association = resource_kind(
    "aws_route_table_association",
    define(
        "RouteTableAssociationAttributes",
        {"subnet_id": identifier_field(), "route_table_id": identifier_field()},
    ),
)


def _has_source(rule: Attributes) -> None:
    if not rule.cidr_blocks and not rule.security_groups:
        raise ValidationError("cidr_blocks", "a rule needs cidr_blocks or security_groups")


SECURITY_GROUP_RULE = define(
    "SecurityGroupRule",
    {
        "from_port": attribute(INTEGER, **PORT_RANGE),
        "to_port": attribute(INTEGER, **PORT_RANGE),
        "protocol": attribute(STRING, default="tcp", choices=["tcp", "udp", "icmp", "-1"]),
        "cidr_blocks": attribute(LIST, items=cidr_field(), default=[]),
        "security_groups": identifier_list(),
        "description": attribute(STRING, optional=True, max_length=255),
    },
    validators=[ordered("from_port", "to_port"), _has_source],
)

SECURITY_GROUP = define(
    "SecurityGroupAttributes",
    {
        "name": attribute(STRING, min_length=1, max_length=255),
        "description": attribute(STRING, default="Managed by InfraSynth", max_length=255),
        "vpc_id": identifier_field(),
        "ingress": attribute(LIST, items=SECURITY_GROUP_RULE, default=[]),
        "egress": attribute(LIST, items=SECURITY_GROUP_RULE, default=[]),
        "tags": tags_field(),
    },
)


def _open_to_world(attrs: Attributes) -> bool:
    return any(WORLD_CIDR in rule.cidr_blocks for rule in attrs.ingress)


def _open_ports(attrs: Attributes) -> list[int]:
    return sorted({rule.from_port for rule in attrs.ingress if WORLD_CIDR in rule.cidr_blocks})


aws_security_group = resource_kind(
    "aws_security_group",
    SECURITY_GROUP,
    outputs=("id", "arn", "name"),
    computed={"open_to_world": _open_to_world, "world_open_ports": _open_ports},
)

# Egress rule allowing all outbound traffic.
ALLOW_ALL_EGRESS = {"from_port": 0, "to_port": 0, "protocol": "-1", "cidr_blocks": [WORLD_CIDR]}
