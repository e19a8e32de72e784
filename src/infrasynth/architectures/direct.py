# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Direct resource declarations used when a component is not registered.

Each builder here stands in for one component capability. It receives the
attributes the architecture would have handed to the component, declares a
minimal equivalent set of raw resources, and exposes the same output names the
component promises. Outputs are real references to the declared resources.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from infrasynth.compose import AggregateReference, Builder, Composer
from infrasynth.resources.aws.compute import DEFAULT_IMAGE_ID
from infrasynth.resources.aws.database import DEFAULT_PORTS
from infrasynth.resources.aws.naming import name_tags, resource_name
from infrasynth.resources.aws.network import ALLOW_ALL_EGRESS, WORLD_CIDR, subnet_cidrs
from infrasynth.synthesis.context import SynthesisContext

# ###############
# Public Interface
# ###############


def network(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
    """A VPC with an internet gateway, public subnets routed to it, and private subnets."""
    composer = Composer(context, "secure_vpc", name)
    zones = list(attributes["availability_zones"])
    tags = dict(attributes.get("tags", {}))
    cidrs = subnet_cidrs(attributes["cidr_block"], 2 * len(zones))

    vpc = composer.declare(
        "vpc",
        "aws_vpc",
        {"cidr_block": attributes["cidr_block"], "tags": name_tags(tags, resource_name(name, limit=255))},
    )
    gateway = composer.declare("internet_gateway", "aws_internet_gateway", {"vpc_id": vpc.id, "tags": tags})
    public = [
        composer.declare(
            f"public_{index}",
            "aws_subnet",
            {
                "vpc_id": vpc.id,
                "cidr_block": cidrs[index],
                "availability_zone": zone,
                "map_public_ip_on_launch": True,
                "tags": tags,
            },
        )
        for index, zone in enumerate(zones)
    ]
    private = [
        composer.declare(
            f"private_{index}",
            "aws_subnet",
            {"vpc_id": vpc.id, "cidr_block": cidrs[len(zones) + index], "availability_zone": zone, "tags": tags},
        )
        for index, zone in enumerate(zones)
    ]
    routes = composer.declare(
        "public_routes",
        "aws_route_table",
        {"vpc_id": vpc.id, "route": [{"cidr_block": WORLD_CIDR, "gateway_id": gateway.id}], "tags": tags},
    )
    for index, subnet in enumerate(public):
        composer.declare(
            f"public_{index}_routes",
            "aws_route_table_association",
            {"subnet_id": subnet.id, "route_table_id": routes.id},
        )

    composer.output("vpc_id", vpc.id)
    composer.output("public_subnet_ids", [subnet.id for subnet in public])
    composer.output("private_subnet_ids", [subnet.id for subnet in private])
    return composer.finish()


def security_groups(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
    """A load balancer group open to the allowed ranges and a web group reachable from it."""
    composer = Composer(context, "web_security_group", name)
    tags = dict(attributes.get("tags", {}))
    allowed = list(attributes.get("allowed_cidr_blocks", [WORLD_CIDR]))

    balancer = composer.declare(
        "load_balancer",
        "aws_security_group",
        {
            "name": resource_name(name, "lb", limit=255),
            "vpc_id": attributes["vpc_id"],
            "ingress": [
                {"from_port": 80, "to_port": 80, "cidr_blocks": allowed},
                {"from_port": 443, "to_port": 443, "cidr_blocks": allowed},
            ],
            "egress": [ALLOW_ALL_EGRESS],
            "tags": tags,
        },
    )
    web = composer.declare(
        "web",
        "aws_security_group",
        {
            "name": resource_name(name, "web", limit=255),
            "vpc_id": attributes["vpc_id"],
            "ingress": [{"from_port": 80, "to_port": 80, "security_groups": [balancer.id]}],
            "egress": [ALLOW_ALL_EGRESS],
            "tags": tags,
        },
    )

    composer.output("load_balancer_security_group_id", balancer.id)
    composer.output("web_security_group_id", web.id)
    return composer.finish()


def load_balancer(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
    """An application load balancer forwarding HTTP (and HTTPS, given a certificate) to one target group."""
    composer = Composer(context, "application_load_balancer", name)
    tags = dict(attributes.get("tags", {}))

    balancer = composer.declare(
        "load_balancer",
        "aws_lb",
        {
            "name": resource_name(name),
            "subnets": list(attributes["subnet_ids"]),
            "security_groups": list(attributes.get("security_group_ids", [])),
            "enable_deletion_protection": attributes.get("enable_deletion_protection", False),
            "tags": tags,
        },
    )
    target_group = composer.declare(
        "target_group",
        "aws_lb_target_group",
        {"name": resource_name(name, "tg"), "port": 80, "vpc_id": attributes["vpc_id"], "tags": tags},
    )
    forward = [{"type": "forward", "target_group_arn": target_group["arn"]}]
    composer.declare(
        "http_listener",
        "aws_lb_listener",
        {"load_balancer_arn": balancer["arn"], "port": 80, "default_action": forward},
    )
    certificate = attributes.get("certificate_arn")
    if certificate:
        composer.declare(
            "https_listener",
            "aws_lb_listener",
            {
                "load_balancer_arn": balancer["arn"],
                "port": 443,
                "protocol": "HTTPS",
                "certificate_arn": certificate,
                "default_action": forward,
            },
        )

    composer.output("load_balancer_arn", balancer["arn"])
    composer.output("load_balancer_arn_suffix", balancer["arn_suffix"])
    composer.output("dns_name", balancer["dns_name"])
    composer.output("zone_id", balancer["zone_id"])
    composer.output("target_group_arn", target_group["arn"])
    return composer.finish()


def web_servers(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
    """A launch template and an auto scaling group attached to the target group."""
    composer = Composer(context, "auto_scaling_web_servers", name)
    tags = dict(attributes.get("tags", {}))

    template = composer.declare(
        "launch_template",
        "aws_launch_template",
        {
            "name_prefix": f"{resource_name(name, limit=120)}-",
            "image_id": attributes.get("image_id", DEFAULT_IMAGE_ID),
            "instance_type": attributes["instance_type"],
            "vpc_security_group_ids": list(attributes.get("security_group_ids", [])),
            "tags": tags,
        },
    )
    group_attrs: dict[str, Any] = {
        "min_size": attributes["min_size"],
        "max_size": attributes["max_size"],
        "desired_capacity": attributes.get("desired_capacity", attributes["min_size"]),
        "launch_template": {"id": template.id},
        "vpc_zone_identifier": list(attributes["subnet_ids"]),
        "tags": tags,
    }
    if attributes.get("target_group_arn") is not None:
        group_attrs["target_group_arns"] = [attributes["target_group_arn"]]
        group_attrs["health_check_type"] = "ELB"
    group = composer.declare("group", "aws_autoscaling_group", group_attrs)

    composer.output("autoscaling_group_name", group["name"])
    composer.output("autoscaling_group_arn", group["arn"])
    return composer.finish()


def database(engine: str) -> Builder:
    """A database instance of *engine* in a subnet group over the given subnets."""

    def build(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
        composer = Composer(context, f"{engine}_database", name)
        tags = dict(attributes.get("tags", {}))
        identifier = resource_name(name, limit=63)

        subnet_group = composer.declare(
            "subnet_group",
            "aws_db_subnet_group",
            {"name": identifier, "subnet_ids": list(attributes["subnet_ids"]), "tags": tags},
        )
        instance = composer.declare(
            "instance",
            "aws_db_instance",
            {
                "identifier": identifier,
                "engine": engine,
                "instance_class": attributes.get("instance_class", "db.t3.micro"),
                "allocated_storage": attributes.get("allocated_storage", 20),
                "storage_encrypted": attributes.get("storage_encrypted", False),
                "multi_az": attributes.get("multi_az", False),
                "db_subnet_group_name": subnet_group["name"],
                "vpc_security_group_ids": list(attributes.get("allowed_security_group_ids", [])),
                "backup_retention_period": attributes.get("backup_retention_days", 7),
                "tags": tags,
            },
        )

        composer.output("endpoint", instance["endpoint"])
        composer.output("address", instance["address"])
        composer.output("port", DEFAULT_PORTS[engine])
        return composer.finish()

    return build


def cache(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
    """A single-node Redis cluster in the given subnets."""
    composer = Composer(context, "elasticache_redis", name)
    tags = dict(attributes.get("tags", {}))
    identifier = resource_name(name, limit=40)

    subnet_group = composer.declare(
        "subnet_group",
        "aws_elasticache_subnet_group",
        {"name": identifier, "subnet_ids": list(attributes["subnet_ids"]), "tags": tags},
    )
    cluster = composer.declare(
        "cluster",
        "aws_elasticache_cluster",
        {
            "cluster_id": identifier,
            "engine": "redis",
            "node_type": attributes.get("node_type", "cache.t3.micro"),
            "num_cache_nodes": 1,
            "port": DEFAULT_PORTS["redis"],
            "subnet_group_name": subnet_group["name"],
            "security_group_ids": list(attributes.get("allowed_security_group_ids", [])),
            "tags": tags,
        },
    )

    composer.output("endpoint", cluster["cache_nodes[0].address"])
    composer.output("port", DEFAULT_PORTS["redis"])
    return composer.finish()


def cdn(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
    """A CloudFront distribution in front of the given origin."""
    composer = Composer(context, "cloudfront_distribution", name)
    distribution_attrs: dict[str, Any] = {
        "origin_domain_name": attributes["origin_domain_name"],
        "origin_id": resource_name(name, "origin", limit=255),
        "origin_protocol_policy": attributes.get("origin_protocol_policy", "https-only"),
        "price_class": attributes.get("price_class", "PriceClass_100"),
        "tags": dict(attributes.get("tags", {})),
    }
    if attributes.get("acm_certificate_arn"):
        distribution_attrs["aliases"] = list(attributes.get("aliases", []))
        distribution_attrs["acm_certificate_arn"] = attributes["acm_certificate_arn"]
    distribution = composer.declare("distribution", "aws_cloudfront_distribution", distribution_attrs)

    composer.output("distribution_id", distribution.id)
    composer.output("domain_name", distribution["domain_name"])
    composer.output("hosted_zone_id", distribution["hosted_zone_id"])
    return composer.finish()
