# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the web_application architecture and its direct fallbacks."""

import json
from typing import Any

import pytest

from infrasynth.architectures import direct
from infrasynth.architectures.web_application import (
    DATABASE_OUTPUTS,
    LOAD_BALANCER_OUTPUTS,
    NETWORK_OUTPUTS,
    SECURITY_OUTPUTS,
    WEB_SERVER_OUTPUTS,
    default_zones,
    web_application,
)
from infrasynth.compose import AggregateReference
from infrasynth.components.aws.network import secure_vpc
from infrasynth.errors import ValidationError
from infrasynth.registry import Registry, architectures, components
from infrasynth.synthesis import SynthesisContext

# ###############
# Helpers
# ###############

CERTIFICATE = "arn:aws:acm:us-east-1:123456789012:certificate/abc"

CONTRACTS = {
    "network": NETWORK_OUTPUTS,
    "security": SECURITY_OUTPUTS,
    "load_balancer": LOAD_BALANCER_OUTPUTS,
    "web_servers": WEB_SERVER_OUTPUTS,
    "database": DATABASE_OUTPUTS,
}


def _network_only() -> Registry:
    registry: Registry = Registry("component")
    registry.register("secure_vpc", secure_vpc)
    return registry


def _build(
    attributes: dict[str, Any], registry: Registry | None = None, name: str = "shop"
) -> tuple[AggregateReference, SynthesisContext]:
    context = SynthesisContext()
    return web_application(context, name, attributes, registry=registry), context


# ###############
# Example scenario
# ###############


def test_network_only_registry() -> None:
    """With only a network component registered, everything else is declared directly."""
    app, context = _build({"domain_name": "example.com", "environment": "development"}, _network_only())

    assert app.outputs["application_url"] == "https://example.com"
    assert app.computed["capabilities"]["caching"] is False
    assert not app.used_fallback("network")
    assert app.fallback_members == frozenset({"security", "load_balancer", "web_servers", "database"})
    assert len(context) > 0


def test_registered_under_architectures() -> None:
    assert architectures.get("web_application") is web_application


# ###############
# Composition
# ###############


class TestComposition:
    def test_development_defaults(self) -> None:
        app, context = _build({"domain_name": "example.com"})
        attrs = app.attributes

        assert attrs.environment == "development"
        assert attrs.instance_type == "t3.small"
        assert attrs.availability_zones == ("us-east-1a", "us-east-1b")
        assert attrs.auto_scaling.min == 1
        assert attrs.auto_scaling.max == 2
        assert not app.has_member("cpu_alarm")
        assert not app.has_member("dashboard")
        assert app.fallback_members == frozenset()
        assert context.emit().names("aws_subnet")[0] == "shop_network_public_0"

    def test_production_profile(self) -> None:
        app, context = _build({"domain_name": "example.com", "environment": "production"})
        document = context.emit()

        assert app.attributes.availability_zones == ("us-east-1a", "us-east-1b", "us-east-1c")
        assert app.attributes.instance_type == "t3.large"
        assert app.has_member("cpu_alarm")
        assert app.has_member("error_alarm")
        assert app.has_member("dashboard")
        assert app.outputs["dashboard_name"] == "shop-dashboard"
        database = document.block("aws_db_instance", "shop_database_instance")
        assert database["multi_az"] is True
        assert database["storage_encrypted"] is True
        assert database["backup_retention_period"] == 7
        assert document.block("aws_lb", "shop_load_balancer_load_balancer")["enable_deletion_protection"] is True

    def test_caller_attributes_override_profile(self) -> None:
        app, _ = _build(
            {
                "domain_name": "example.com",
                "environment": "production",
                "instance_type": "m5.xlarge",
                "auto_scaling": {"max": 20},
                "availability_zones": ["us-east-1d", "us-east-1e"],
            }
        )
        assert app.attributes.instance_type == "m5.xlarge"
        assert app.attributes.auto_scaling.min == 2
        assert app.attributes.auto_scaling.max == 20
        assert app.attributes.availability_zones == ("us-east-1d", "us-east-1e")

    def test_zones_follow_region(self) -> None:
        app, _ = _build({"domain_name": "example.com", "region": "eu-west-1"})
        assert app.attributes.availability_zones == ("eu-west-1a", "eu-west-1b")

    def test_tags_reach_every_member(self) -> None:
        _, context = _build({"domain_name": "example.com", "tags": {"Team": "web"}})
        tags = context.emit().block("aws_vpc", "shop_network_vpc")["tags"]

        assert tags["Environment"] == "development"
        assert tags["Architecture"] == "web_application"
        assert tags["ManagedBy"] == "infrasynth"
        assert tags["Team"] == "web"

    def test_optional_members(self) -> None:
        app, context = _build(
            {
                "domain_name": "example.com",
                "enable_caching": True,
                "enable_cdn": True,
                "ssl_certificate_arn": CERTIFICATE,
                "database_enabled": False,
            }
        )
        document = context.emit()

        assert app.used_fallback("cache")
        assert app.used_fallback("cdn")
        assert not app.has_member("database")
        assert "database_endpoint" not in app.outputs
        assert app.outputs["cache_endpoint"].render() == (
            "${aws_elasticache_cluster.shop_cache_cluster.cache_nodes[0].address}"
        )
        assert app.outputs["cdn_domain_name"].render() == (
            "${aws_cloudfront_distribution.shop_cdn_distribution.domain_name}"
        )
        distribution = document.block("aws_cloudfront_distribution", "shop_cdn_distribution")
        assert distribution["aliases"] == ["example.com"]
        assert distribution["origin_protocol_policy"] == "https-only"
        record = document.block("aws_route53_record", "shop_dns_record")
        assert record["alias"]["name"] == "${aws_cloudfront_distribution.shop_cdn_distribution.domain_name}"
        assert document.names("aws_lb_listener") == (
            "shop_load_balancer_http_listener",
            "shop_load_balancer_https_listener",
        )

    def test_member_outputs_cannot_change(self) -> None:
        app, _ = _build({"domain_name": "example.com"}, Registry("component"))
        subnets = app.member("network").outputs["public_subnet_ids"]

        assert isinstance(subnets, tuple)
        with pytest.raises(AttributeError):
            subnets.append("subnet-extra")  # type: ignore[attr-defined]
        assert app.member("network").outputs["public_subnet_ids"] == subnets

    def test_postgresql_engine(self) -> None:
        _, context = _build({"domain_name": "example.com", "database_engine": "postgresql"})
        assert context.emit().block("aws_db_instance", "shop_database_instance")["engine"] == "postgres"

    def test_existing_hosted_zone(self) -> None:
        app, context = _build({"domain_name": "example.com", "hosted_zone_id": "Z0123456789"})
        document = context.emit()

        assert not app.has_member("dns_zone")
        assert "name_servers" not in app.outputs
        assert document.block("aws_route53_record", "shop_dns_record")["zone_id"] == "Z0123456789"

    def test_dns_record_targets_load_balancer_without_cdn(self) -> None:
        app, context = _build({"domain_name": "example.com"})
        record = context.emit().block("aws_route53_record", "shop_dns_record")

        assert record["alias"]["name"] == "${aws_lb.shop_load_balancer_load_balancer.dns_name}"
        assert record["zone_id"] == "${aws_route53_zone.shop_dns_zone.zone_id}"
        assert app.outputs["name_servers"].render() == "${aws_route53_zone.shop_dns_zone.name_servers}"

    def test_alarms_watch_web_tier(self) -> None:
        _, context = _build({"domain_name": "example.com", "environment": "staging"})
        document = context.emit()

        alarm = document.block("aws_cloudwatch_metric_alarm", "shop_cpu_alarm")
        assert alarm["dimensions"] == {
            "AutoScalingGroupName": "${aws_autoscaling_group.shop_web_servers_group.name}"
        }
        assert alarm["threshold"] == 80.0
        assert document.names("aws_cloudwatch_dashboard") == ()

    def test_dashboard_body_is_json(self) -> None:
        _, context = _build({"domain_name": "example.com", "monitoring": {"detailed_monitoring": True}})
        body = json.loads(context.emit().block("aws_cloudwatch_dashboard", "shop_dashboard")["dashboard_body"])
        assert len(body["widgets"]) == 2


# ###############
# Fallback parity
# ###############


class TestFallbackParity:
    ATTRIBUTES = {"domain_name": "example.com", "environment": "production"}

    def test_every_member_satisfies_its_contract_on_both_paths(self) -> None:
        registered, _ = _build(self.ATTRIBUTES, components)
        fallback, _ = _build(self.ATTRIBUTES, Registry("component"))

        assert fallback.fallback_members == frozenset(CONTRACTS)
        for slot, contract in CONTRACTS.items():
            assert set(contract) <= set(registered.member(slot).outputs), slot
            assert set(contract) <= set(fallback.member(slot).outputs), slot

    def test_architecture_outputs_match(self) -> None:
        registered, _ = _build(self.ATTRIBUTES, components)
        fallback, _ = _build(self.ATTRIBUTES, Registry("component"))

        assert list(registered.outputs) == list(fallback.outputs)
        assert registered.outputs["application_url"] == fallback.outputs["application_url"]
        assert registered.computed == fallback.computed

    @pytest.mark.parametrize(
        ("builder", "attributes"),
        [
            (direct.cache, {"subnet_ids": ["subnet-1"], "allowed_security_group_ids": ["sg-1"]}),
            (direct.cdn, {"origin_domain_name": "lb.example.com"}),
            (direct.database("postgres"), {"subnet_ids": ["subnet-1"]}),
        ],
    )
    def test_direct_builders_emit_valid_resources(self, builder: Any, attributes: dict[str, Any]) -> None:
        context = SynthesisContext()
        aggregate = builder(context, "standalone", attributes)
        assert aggregate.outputs
        assert context.emit().resource_count() >= 1


# ###############
# Computed properties
# ###############


class TestComputedProperties:
    def test_pure_and_repeatable(self) -> None:
        """Computed properties never declare resources and return the same value every time."""
        app, context = _build({"domain_name": "example.com", "environment": "production"})
        before = len(context)

        first = app.computed
        second = app.computed

        assert first == second
        assert len(context) == before

    def test_scores_by_environment(self) -> None:
        development, _ = _build({"domain_name": "example.com"})
        production, _ = _build({"domain_name": "example.com", "environment": "production"})

        assert development.compute("security_compliance_score") == 15
        assert production.compute("security_compliance_score") == 60
        assert development.compute("high_availability_score") == 25
        assert production.compute("high_availability_score") == 90
        assert production.compute("estimated_monthly_cost") > development.compute("estimated_monthly_cost")

    def test_fully_hardened_scores(self) -> None:
        app, _ = _build(
            {
                "domain_name": "example.com",
                "environment": "production",
                "enable_cdn": True,
                "ssl_certificate_arn": CERTIFICATE,
                "allowed_cidr_blocks": ["203.0.113.0/24"],
            }
        )
        assert app.compute("security_compliance_score") == 100
        assert app.compute("high_availability_score") == 100

    def test_capabilities(self) -> None:
        app, _ = _build({"domain_name": "example.com", "enable_caching": True})
        assert app.compute("capabilities") == {
            "high_availability": False,
            "multi_az": True,
            "auto_scaling": True,
            "database": True,
            "caching": True,
            "cdn": False,
            "ssl": False,
            "monitoring": False,
        }

    def test_cost_estimate(self) -> None:
        app, _ = _build({"domain_name": "example.com"})
        # t3.small web server, load balancer, db.t3.micro with 20 GB, hosted zone.
        assert app.compute("estimated_monthly_cost") == pytest.approx(52.66)


# ###############
# Determinism
# ###############


def test_identical_inputs_produce_identical_documents() -> None:
    attributes = {"domain_name": "example.com", "environment": "production", "enable_caching": True}
    _, first = _build(attributes)
    _, second = _build(attributes)
    assert first.emit().to_json() == second.emit().to_json()


def test_default_zones() -> None:
    assert default_zones("us-west-2", "staging") == ["us-west-2a", "us-west-2b"]
    assert default_zones("us-west-2", "production") == ["us-west-2a", "us-west-2b", "us-west-2c"]


# ###############
# Error Cases
# ###############


@pytest.mark.parametrize(
    ("attributes", "path"),
    [
        ({}, "domain_name"),
        ({"domain_name": "Not A Domain"}, "domain_name"),
        ({"domain_name": "example.com", "environment": "qa"}, "environment"),
        (
            {"domain_name": "example.com", "region": "eu-west-1", "availability_zones": ["us-east-1a"]},
            "availability_zones",
        ),
        ({"domain_name": "example.com", "auto_scaling": {"min": 2, "max": 4, "desired": 5}}, "auto_scaling.desired"),
        ({"domain_name": "example.com", "auto_scaling": {"min": 5}}, "auto_scaling.min"),
        ({"domain_name": "example.com", "vpc_cidr": "10.0.0.0/23"}, "vpc_cidr"),
        ({"domain_name": "example.com", "security": {"enable_ssh": True}}, "security.ssh_cidr_blocks"),
        ({"domain_name": "example.com", "ssl_certificate_arn": "not-an-arn"}, "ssl_certificate_arn"),
    ],
)
def test_invalid_attributes(attributes: dict[str, Any], path: str) -> None:
    context = SynthesisContext()
    with pytest.raises(ValidationError) as exc_info:
        web_application(context, "shop", attributes)
    assert exc_info.value.path == path
    assert len(context) == 0
