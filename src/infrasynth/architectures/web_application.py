# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""The ``web_application`` architecture: a load-balanced, auto-scaled web tier.

Members, in composition order:

- ``network``: VPC with public and private subnets (``secure_vpc``)
- ``security``: security groups for the load balancer and the web tier (``web_security_group``)
- ``load_balancer``: application load balancer (``application_load_balancer``)
- ``web_servers``: auto scaling group in the private subnets (``auto_scaling_web_servers``)
- ``database``: optional relational database (``mysql_database`` / ``postgresql_database``)
- ``cache``: optional Redis cache (``elasticache_redis``)
- ``cdn``: optional CloudFront distribution (``cloudfront_distribution``)
- ``cpu_alarm``, ``error_alarm``, ``dashboard``: optional monitoring resources
- ``dns_zone``, ``dns_record``: DNS for the application domain

Every component capability has a direct fallback in :mod:`infrasynth.architectures.direct`,
so the architecture synthesizes with any subset of components registered.

Attributes are merged in three layers: the environment profile, zones derived
from the region, then the caller's attributes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from infrasynth.architectures import direct
from infrasynth.compose import AggregateReference, Composer, merge_layers
from infrasynth.errors import ValidationError
from infrasynth.reference import render_placeholders
from infrasynth.registry import Registry, architectures
from infrasynth.resources.aws._common import cidr_field, tags_field
from infrasynth.resources.aws.compute import INSTANCE_TYPE_PATTERN
from infrasynth.resources.aws.database import DB_INSTANCE_CLASS_PATTERN
from infrasynth.resources.aws.edge import DOMAIN_PATTERN
from infrasynth.resources.aws.monitoring import dashboard_body
from infrasynth.resources.aws.naming import resource_name
from infrasynth.resources.aws.network import AVAILABILITY_ZONE_PATTERN, WORLD_CIDR, subnet_cidrs
from infrasynth.schema import BOOLEAN, INTEGER, LIST, NUMBER, STRING, Attributes, attribute, define, ordered, requires
from infrasynth.synthesis.context import SynthesisContext

# ###############
# Public Interface
# ###############

ENVIRONMENTS = ("development", "staging", "production")
DATABASE_ENGINES = ("mysql", "postgresql")

DEFAULT_REGION = "us-east-1"

# Defaults applied under the caller's attributes, by environment.
PROFILES: dict[str, dict[str, Any]] = {
    "development": {
        "instance_type": "t3.small",
        "auto_scaling": {"min": 1, "max": 2},
        "monitoring": {"enable_alerting": False, "detailed_monitoring": False},
        "backup": {"retention_days": 1},
    },
    "staging": {
        "instance_type": "t3.medium",
        "auto_scaling": {"min": 1, "max": 4},
        "monitoring": {"enable_alerting": True, "detailed_monitoring": False},
        "backup": {"retention_days": 3},
    },
    "production": {
        "instance_type": "t3.large",
        "auto_scaling": {"min": 2, "max": 10},
        "high_availability": True,
        "database_instance_class": "db.t3.medium",
        "monitoring": {"enable_alerting": True, "detailed_monitoring": True},
        "security": {"encryption_at_rest": True},
        "backup": {"retention_days": 7},
    },
}

NETWORK_OUTPUTS = ("vpc_id", "public_subnet_ids", "private_subnet_ids")
SECURITY_OUTPUTS = ("load_balancer_security_group_id", "web_security_group_id")
LOAD_BALANCER_OUTPUTS = ("load_balancer_arn", "load_balancer_arn_suffix", "dns_name", "zone_id", "target_group_arn")
WEB_SERVER_OUTPUTS = ("autoscaling_group_name",)
DATABASE_OUTPUTS = ("endpoint", "port")
CACHE_OUTPUTS = ("endpoint", "port")
CDN_OUTPUTS = ("domain_name", "hosted_zone_id")


def _desired_within_bounds(scaling: Attributes) -> None:
    if scaling.desired is not None and not scaling.min <= scaling.desired <= scaling.max:
        raise ValidationError("desired", f"desired ({scaling.desired}) must be between {scaling.min} and {scaling.max}")


AUTO_SCALING = define(
    "WebApplicationAutoScaling",
    {
        "min": attribute(INTEGER, default=1, ge=1),
        "max": attribute(INTEGER, default=3, ge=1),
        "desired": attribute(INTEGER, optional=True, ge=1),
    },
    validators=[ordered("min", "max"), _desired_within_bounds],
)

MONITORING = define(
    "WebApplicationMonitoring",
    {
        "enable_alerting": attribute(BOOLEAN, default=True),
        "detailed_monitoring": attribute(BOOLEAN, default=False),
        "cpu_alarm_threshold": attribute(NUMBER, default=80.0, gt=0, le=100),
        "alarm_actions": attribute(LIST, items=STRING, default=[]),
    },
)

SECURITY = define(
    "WebApplicationSecurity",
    {
        "encryption_at_rest": attribute(BOOLEAN, default=False),
        "enable_ssh": attribute(BOOLEAN, default=False),
        "ssh_cidr_blocks": attribute(LIST, items=cidr_field(), default=[]),
    },
    validators=[requires("enable_ssh", "ssh_cidr_blocks")],
)

BACKUP = define(
    "WebApplicationBackup",
    {"retention_days": attribute(INTEGER, default=7, ge=0, le=35)},
)


def _zones_match_region(attrs: Attributes) -> None:
    for zone in attrs.availability_zones or ():
        if not (zone.startswith(attrs.region) and len(zone) == len(attrs.region) + 1):
            raise ValidationError("availability_zones", f"zone '{zone}' is not in region '{attrs.region}'")


def _subnets_fit(attrs: Attributes) -> None:
    try:
        subnet_cidrs(attrs.vpc_cidr, 2 * len(attrs.availability_zones or ()))
    except ValueError as exc:
        raise ValidationError("vpc_cidr", str(exc)) from exc


WEB_APPLICATION = define(
    "WebApplicationAttributes",
    {
        "domain_name": attribute(STRING, pattern=DOMAIN_PATTERN, max_length=253),
        "environment": attribute(STRING, default="development", choices=ENVIRONMENTS),
        "region": attribute(STRING, default=DEFAULT_REGION, pattern=r"^[a-z]{2}(-[a-z]+)+-\d$"),
        "availability_zones": attribute(
            LIST, items=attribute(STRING, pattern=AVAILABILITY_ZONE_PATTERN), min_length=1, max_length=6
        ),
        "vpc_cidr": cidr_field(default="10.0.0.0/16"),
        "instance_type": attribute(STRING, default="t3.medium", pattern=INSTANCE_TYPE_PATTERN),
        "auto_scaling": attribute(AUTO_SCALING, default={}),
        "database_enabled": attribute(BOOLEAN, default=True),
        "database_engine": attribute(STRING, default="mysql", choices=DATABASE_ENGINES),
        "database_instance_class": attribute(STRING, default="db.t3.micro", pattern=DB_INSTANCE_CLASS_PATTERN),
        "database_allocated_storage": attribute(INTEGER, default=20, ge=20, le=65536),
        "enable_caching": attribute(BOOLEAN, default=False),
        "enable_cdn": attribute(BOOLEAN, default=False),
        "high_availability": attribute(BOOLEAN, default=False),
        "ssl_certificate_arn": attribute(STRING, optional=True, pattern=r"^arn:aws:acm:"),
        "hosted_zone_id": attribute(STRING, optional=True, min_length=1),
        "allowed_cidr_blocks": attribute(LIST, items=cidr_field(), default=[WORLD_CIDR], min_length=1),
        "monitoring": attribute(MONITORING, default={}),
        "security": attribute(SECURITY, default={}),
        "backup": attribute(BACKUP, default={}),
        "tags": tags_field(),
    },
    validators=[_zones_match_region, _subnets_fit],
    doc="Attributes of the web application architecture.",
)


def default_zones(region: str, environment: str) -> list[str]:
    """Availability zones used when none are given: three in production, two elsewhere."""
    count = 3 if environment == "production" else 2
    return [f"{region}{letter}" for letter in "abc"[:count]]


def architecture_tags(attrs: Attributes) -> dict[str, str]:
    """Tags applied to every member: environment, architecture, and owner, then the caller's tags."""
    return {
        "Environment": attrs.environment,
        "Architecture": "web_application",
        "ManagedBy": "infrasynth",
        **attrs.tags,
    }


@architectures.provider("web_application")
def web_application(
    context: SynthesisContext,
    name: str,
    attributes: Mapping[str, Any],
    *,
    registry: Registry | None = None,
) -> AggregateReference:
    """Compose a complete web application stack.

    Args:
        context: Synthesis context to declare into.
        name: Architecture name; member names derive from it.
        attributes: Caller attributes (see :data:`WEB_APPLICATION`).
        registry: Component registry to resolve capabilities from. Defaults
            to the process-wide component registry.

    Returns:
        The aggregate reference of the stack.

    Raises:
        ValidationError: If the merged attributes are invalid.
    """
    composer = Composer(context, "web_application", name, registry=registry)
    attrs = composer.merge_attributes(WEB_APPLICATION, *_default_layers(attributes))
    production = attrs.environment == "production"
    tags = architecture_tags(attrs)

    network = composer.compose(
        "network",
        "secure_vpc",
        {"cidr_block": attrs.vpc_cidr, "availability_zones": list(attrs.availability_zones), "tags": tags},
        fallback=direct.network,
        provides=NETWORK_OUTPUTS,
    )
    security = composer.compose(
        "security",
        "web_security_group",
        {
            "vpc_id": network["vpc_id"],
            "allowed_cidr_blocks": list(attrs.allowed_cidr_blocks),
            "enable_ssh": attrs.security.enable_ssh,
            "ssh_cidr_blocks": list(attrs.security.ssh_cidr_blocks),
            "tags": tags,
        },
        fallback=direct.security_groups,
        provides=SECURITY_OUTPUTS,
    )
    load_balancer = composer.compose(
        "load_balancer",
        "application_load_balancer",
        {
            "vpc_id": network["vpc_id"],
            "subnet_ids": network["public_subnet_ids"],
            "security_group_ids": [security["load_balancer_security_group_id"]],
            "certificate_arn": attrs.ssl_certificate_arn,
            "enable_deletion_protection": production,
            "tags": tags,
        },
        fallback=direct.load_balancer,
        provides=LOAD_BALANCER_OUTPUTS,
    )
    web_servers = composer.compose(
        "web_servers",
        "auto_scaling_web_servers",
        {
            "subnet_ids": network["private_subnet_ids"],
            "security_group_ids": [security["web_security_group_id"]],
            "target_group_arn": load_balancer["target_group_arn"],
            "min_size": attrs.auto_scaling.min,
            "max_size": attrs.auto_scaling.max,
            "desired_capacity": _desired_capacity(attrs),
            "instance_type": attrs.instance_type,
            "detailed_monitoring": attrs.monitoring.detailed_monitoring,
            "tags": tags,
        },
        fallback=direct.web_servers,
        provides=WEB_SERVER_OUTPUTS,
    )

    if attrs.database_enabled:
        engine = "postgres" if attrs.database_engine == "postgresql" else "mysql"
        composer.compose(
            "database",
            f"{attrs.database_engine}_database",
            {
                "vpc_id": network["vpc_id"],
                "subnet_ids": network["private_subnet_ids"],
                "allowed_security_group_ids": [security["web_security_group_id"]],
                "instance_class": attrs.database_instance_class,
                "allocated_storage": attrs.database_allocated_storage,
                "storage_encrypted": attrs.security.encryption_at_rest,
                "backup_retention_days": attrs.backup.retention_days,
                "multi_az": _database_multi_az(attrs),
                "tags": tags,
            },
            fallback=direct.database(engine),
            provides=DATABASE_OUTPUTS,
        )

    if attrs.enable_caching:
        composer.compose(
            "cache",
            "elasticache_redis",
            {
                "subnet_ids": network["private_subnet_ids"],
                "allowed_security_group_ids": [security["web_security_group_id"]],
                "node_type": "cache.t3.micro",
                "tags": tags,
            },
            fallback=direct.cache,
            provides=CACHE_OUTPUTS,
        )

    if attrs.enable_cdn:
        cdn_attrs: dict[str, Any] = {
            "origin_domain_name": load_balancer["dns_name"],
            "origin_protocol_policy": "https-only" if attrs.ssl_certificate_arn else "http-only",
            "price_class": "PriceClass_All" if production else "PriceClass_100",
            "tags": tags,
        }
        if attrs.ssl_certificate_arn:
            cdn_attrs["aliases"] = [attrs.domain_name]
            cdn_attrs["acm_certificate_arn"] = attrs.ssl_certificate_arn
        composer.compose("cdn", "cloudfront_distribution", cdn_attrs, fallback=direct.cdn, provides=CDN_OUTPUTS)

    if attrs.monitoring.enable_alerting:
        composer.declare(
            "cpu_alarm",
            "aws_cloudwatch_metric_alarm",
            {
                "alarm_name": resource_name(name, "high-cpu", limit=255),
                "alarm_description": "Web tier CPU utilization is high",
                "comparison_operator": "GreaterThanThreshold",
                "evaluation_periods": 2,
                "metric_name": "CPUUtilization",
                "namespace": "AWS/EC2",
                "threshold": attrs.monitoring.cpu_alarm_threshold,
                "dimensions": {"AutoScalingGroupName": web_servers["autoscaling_group_name"]},
                "alarm_actions": list(attrs.monitoring.alarm_actions),
                "tags": tags,
            },
        )
        composer.declare(
            "error_alarm",
            "aws_cloudwatch_metric_alarm",
            {
                "alarm_name": resource_name(name, "target-5xx", limit=255),
                "alarm_description": "Web tier is returning server errors",
                "comparison_operator": "GreaterThanThreshold",
                "evaluation_periods": 1,
                "metric_name": "HTTPCode_Target_5XX_Count",
                "namespace": "AWS/ApplicationELB",
                "statistic": "Sum",
                "threshold": 10.0,
                "dimensions": {"LoadBalancer": load_balancer["load_balancer_arn_suffix"]},
                "alarm_actions": list(attrs.monitoring.alarm_actions),
                "tags": tags,
            },
        )

    dashboard_name = resource_name(name, "dashboard", limit=255)
    if attrs.monitoring.detailed_monitoring:
        composer.declare(
            "dashboard",
            "aws_cloudwatch_dashboard",
            {"dashboard_name": dashboard_name, "dashboard_body": _dashboard(attrs, web_servers, load_balancer)},
        )

    if attrs.hosted_zone_id:
        zone_id: Any = attrs.hosted_zone_id
    else:
        zone = composer.declare("dns_zone", "aws_route53_zone", {"name": attrs.domain_name, "tags": tags})
        zone_id = zone["zone_id"]
    target = composer.member("cdn") if composer.has("cdn") else None
    alias = (
        {"name": target["domain_name"], "zone_id": target["hosted_zone_id"], "evaluate_target_health": False}
        if target is not None
        else {"name": load_balancer["dns_name"], "zone_id": load_balancer["zone_id"]}
    )
    composer.declare(
        "dns_record",
        "aws_route53_record",
        {"zone_id": zone_id, "name": attrs.domain_name, "type": "A", "alias": alias},
    )

    composer.output("application_url", f"https://{attrs.domain_name}")
    composer.output("load_balancer_dns_name", load_balancer["dns_name"])
    composer.output("vpc_id", network["vpc_id"])
    if composer.has("database"):
        composer.output("database_endpoint", composer.member("database")["endpoint"])
    if composer.has("cache"):
        composer.output("cache_endpoint", composer.member("cache")["endpoint"])
    if composer.has("cdn"):
        composer.output("cdn_domain_name", composer.member("cdn")["domain_name"])
    if composer.has("dashboard"):
        composer.output("dashboard_name", dashboard_name)
    if composer.has("dns_zone"):
        composer.output("name_servers", composer.member("dns_zone")["name_servers"])

    composer.computed("capabilities", capabilities)
    composer.computed("estimated_monthly_cost", estimated_monthly_cost)
    composer.computed("security_compliance_score", security_compliance_score)
    composer.computed("high_availability_score", high_availability_score)
    return composer.finish()


def capabilities(aggregate: AggregateReference) -> dict[str, bool]:
    """Feature flags of a finished web application."""
    attrs = aggregate.attributes
    return {
        "high_availability": attrs.high_availability,
        "multi_az": len(attrs.availability_zones) >= 2,
        "auto_scaling": attrs.auto_scaling.max > attrs.auto_scaling.min,
        "database": aggregate.has_member("database"),
        "caching": aggregate.has_member("cache"),
        "cdn": aggregate.has_member("cdn"),
        "ssl": attrs.ssl_certificate_arn is not None,
        "monitoring": aggregate.has_member("cpu_alarm") or aggregate.has_member("dashboard"),
    }


def estimated_monthly_cost(aggregate: AggregateReference) -> float:
    """Rough on-demand monthly cost in USD.

    Uses list prices per instance size; instance families and data transfer
    are not distinguished.
    """
    attrs = aggregate.attributes
    cost = _hourly(attrs.instance_type, _INSTANCE_HOURLY) * _HOURS_PER_MONTH * _desired_capacity(attrs)
    cost += _LOAD_BALANCER_MONTHLY
    if aggregate.has_member("database"):
        database = _hourly(attrs.database_instance_class, _DATABASE_HOURLY) * _HOURS_PER_MONTH
        database += attrs.database_allocated_storage * _STORAGE_PER_GB
        cost += database * (2 if _database_multi_az(attrs) else 1)
    if aggregate.has_member("cache"):
        cost += _hourly("cache.t3.micro", _INSTANCE_HOURLY) * _HOURS_PER_MONTH
    if aggregate.has_member("cdn"):
        cost += _CDN_MONTHLY
    cost += _ALARM_MONTHLY * sum(aggregate.has_member(slot) for slot in ("cpu_alarm", "error_alarm"))
    if aggregate.has_member("dashboard"):
        cost += _DASHBOARD_MONTHLY
    if aggregate.has_member("dns_zone"):
        cost += _HOSTED_ZONE_MONTHLY
    return round(cost, 2)


def security_compliance_score(aggregate: AggregateReference) -> int:
    """Security posture score from 0 to 100."""
    attrs = aggregate.attributes
    score = 0
    if attrs.ssl_certificate_arn is not None:
        score += 20
    if attrs.security.encryption_at_rest:
        score += 20
    if not attrs.security.enable_ssh:
        score += 15
    if WORLD_CIDR not in attrs.allowed_cidr_blocks:
        score += 10
    if aggregate.has_member("cpu_alarm"):
        score += 15
    if attrs.backup.retention_days >= 7:
        score += 10
    if aggregate.has_member("cdn"):
        score += 10
    return score


def high_availability_score(aggregate: AggregateReference) -> int:
    """Resilience score from 0 to 100."""
    attrs = aggregate.attributes
    zones = len(attrs.availability_zones)
    score = 0
    if zones >= 2:
        score += 25
    if zones >= 3:
        score += 10
    if attrs.auto_scaling.min >= 2:
        score += 25
    if not aggregate.has_member("database") or _database_multi_az(attrs):
        score += 15
    if attrs.high_availability:
        score += 15
    if aggregate.has_member("cdn"):
        score += 10
    return score


# ################
# Implementation
# ################

_HOURS_PER_MONTH = 730
_LOAD_BALANCER_MONTHLY = 22.27
_STORAGE_PER_GB = 0.115
_CDN_MONTHLY = 8.5
_ALARM_MONTHLY = 0.1
_DASHBOARD_MONTHLY = 3.0
_HOSTED_ZONE_MONTHLY = 0.5

_INSTANCE_HOURLY = {
    "nano": 0.0052,
    "micro": 0.0104,
    "small": 0.0208,
    "medium": 0.0416,
    "large": 0.0832,
    "xlarge": 0.1664,
}
_DATABASE_HOURLY = {
    "micro": 0.017,
    "small": 0.034,
    "medium": 0.068,
    "large": 0.136,
    "xlarge": 0.272,
}


def _hourly(instance_type: str, prices: Mapping[str, float]) -> float:
    size = instance_type.rsplit(".", 1)[-1]
    if size in prices:
        return prices[size]
    if size.endswith("xlarge") and size[: -len("xlarge")].isdigit():
        return prices["xlarge"] * int(size[: -len("xlarge")])
    return prices["large"]


def _default_layers(attributes: Mapping[str, Any]) -> tuple[Mapping[str, Any], ...]:
    """Profile and zone defaults for *attributes*, followed by the attributes themselves."""
    raw = merge_layers(attributes)
    environment = raw.get("environment", "development")
    region = raw.get("region", DEFAULT_REGION)
    profile = PROFILES.get(environment, {}) if isinstance(environment, str) else {}
    zones: dict[str, Any] = {}
    if isinstance(region, str) and isinstance(environment, str):
        zones["availability_zones"] = default_zones(region, environment)
    return profile, zones, attributes


def _desired_capacity(attrs: Attributes) -> int:
    scaling = attrs.auto_scaling
    return scaling.desired if scaling.desired is not None else scaling.min


def _database_multi_az(attrs: Attributes) -> bool:
    return attrs.high_availability and attrs.environment == "production"


def _dashboard(attrs: Attributes, web_servers: Any, load_balancer: Any) -> str:
    group = render_placeholders(web_servers["autoscaling_group_name"])
    balancer = render_placeholders(load_balancer["load_balancer_arn_suffix"])
    return dashboard_body(
        [
            {
                "type": "metric",
                "properties": {
                    "title": "CPU utilization",
                    "region": attrs.region,
                    "metrics": [["AWS/EC2", "CPUUtilization", "AutoScalingGroupName", group]],
                },
            },
            {
                "type": "metric",
                "properties": {
                    "title": "Requests",
                    "region": attrs.region,
                    "metrics": [["AWS/ApplicationELB", "RequestCount", "LoadBalancer", balancer]],
                },
            },
        ]
    )
