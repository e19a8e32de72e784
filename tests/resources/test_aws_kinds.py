# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the bundled AWS resource kinds and their helpers."""

import json

import pytest

from infrasynth.errors import ValidationError
from infrasynth.resources.aws.monitoring import dashboard_body
from infrasynth.resources.aws.naming import name_tags, resource_name
from infrasynth.resources.aws.network import ALLOW_ALL_EGRESS, subnet_cidrs
from infrasynth.synthesis import SynthesisContext

# ###############
# Helpers
# ###############


def _vpc(context: SynthesisContext, cidr: str = "10.0.0.0/16") -> str:
    return context.declare("aws_vpc", "main", {"cidr_block": cidr}).id.render()


# ###############
# Network
# ###############


class TestNetwork:
    def test_vpc_defaults_and_computed(self, context: SynthesisContext) -> None:
        vpc = context.declare("aws_vpc", "main", {"cidr_block": "10.0.0.0/16"})

        assert vpc.attributes.to_block() == {
            "cidr_block": "10.0.0.0/16",
            "enable_dns_hostnames": True,
            "enable_dns_support": True,
            "instance_tenancy": "default",
            "tags": {},
        }
        assert vpc.computed == {"is_private_cidr": True, "address_count": 65536}

    def test_vpc_rejects_host_bits(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare("aws_vpc", "main", {"cidr_block": "10.0.0.1/16"})
        assert exc_info.value.path == "aws_vpc.main.cidr_block"

    def test_subnet_zone_pattern(self, context: SynthesisContext) -> None:
        vpc_id = _vpc(context)
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_subnet", "a", {"vpc_id": vpc_id, "cidr_block": "10.0.0.0/24", "availability_zone": "us-east-1"}
            )
        assert exc_info.value.path == "aws_subnet.a.availability_zone"

    def test_route_needs_exactly_one_target(self, context: SynthesisContext) -> None:
        vpc_id = _vpc(context)
        with pytest.raises(ValidationError) as exc_info:
            context.declare("aws_route_table", "public", {"vpc_id": vpc_id, "route": [{"cidr_block": "0.0.0.0/0"}]})
        assert exc_info.value.path == "aws_route_table.public.route[0]"

    def test_security_group_rules(self, context: SynthesisContext) -> None:
        vpc_id = _vpc(context)
        group = context.declare(
            "aws_security_group",
            "web",
            {
                "name": "web",
                "vpc_id": vpc_id,
                "ingress": [
                    {"from_port": 443, "to_port": 443, "cidr_blocks": ["0.0.0.0/0"]},
                    {"from_port": 22, "to_port": 22, "cidr_blocks": ["10.0.0.0/8"]},
                ],
                "egress": [ALLOW_ALL_EGRESS],
            },
        )
        assert group.computed == {"open_to_world": True, "world_open_ports": [443]}

    def test_security_group_rule_port_order(self, context: SynthesisContext) -> None:
        vpc_id = _vpc(context)
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_security_group",
                "web",
                {"name": "web", "vpc_id": vpc_id, "ingress": [{"from_port": 443, "to_port": 80, "cidr_blocks": []}]},
            )
        assert exc_info.value.path == "aws_security_group.web.ingress[0].from_port"

    def test_security_group_rule_needs_source(self, context: SynthesisContext) -> None:
        vpc_id = _vpc(context)
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_security_group",
                "web",
                {"name": "web", "vpc_id": vpc_id, "ingress": [{"from_port": 80, "to_port": 80}]},
            )
        assert exc_info.value.path == "aws_security_group.web.ingress[0].cidr_blocks"


class TestSubnetCidrs:
    def test_carves_in_order(self) -> None:
        assert subnet_cidrs("10.0.0.0/16", 3) == ["10.0.0.0/24", "10.0.1.0/24", "10.0.2.0/24"]

    def test_custom_prefix(self) -> None:
        assert subnet_cidrs("10.0.0.0/24", 2, prefix=26) == ["10.0.0.0/26", "10.0.0.64/26"]

    def test_too_many(self) -> None:
        with pytest.raises(ValueError, match="holds only 4"):
            subnet_cidrs("10.0.0.0/22", 5)

    def test_prefix_larger_than_network(self) -> None:
        with pytest.raises(ValueError):
            subnet_cidrs("10.0.0.0/24", 1, prefix=16)


# ###############
# Compute
# ###############


class TestCompute:
    def test_listener_https_needs_certificate(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_lb_listener",
                "https",
                {
                    "load_balancer_arn": "arn:aws:elasticloadbalancing:lb",
                    "port": 443,
                    "protocol": "HTTPS",
                    "default_action": [{"type": "forward", "target_group_arn": "arn:tg"}],
                },
            )
        assert exc_info.value.path == "aws_lb_listener.https.certificate_arn"

    def test_listener_redirect_needs_target(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_lb_listener",
                "http",
                {"load_balancer_arn": "arn:lb", "port": 80, "default_action": [{"type": "redirect"}]},
            )
        assert exc_info.value.path == "aws_lb_listener.http.default_action[0].redirect"

    def test_autoscaling_group(self, context: SynthesisContext) -> None:
        group = context.declare(
            "aws_autoscaling_group",
            "web",
            {"min_size": 1, "max_size": 4, "launch_template": {"name": "web"}, "health_check_type": "ELB"},
        )
        assert group.computed == {"effective_capacity": 1, "uses_load_balancer_health": True}
        assert group.attributes.to_block()["launch_template"] == {"name": "web", "version": "$Latest"}

    def test_autoscaling_group_capacity_bounds(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_autoscaling_group",
                "web",
                {"min_size": 2, "max_size": 4, "desired_capacity": 5, "launch_template": {"name": "web"}},
            )
        assert exc_info.value.path == "aws_autoscaling_group.web.desired_capacity"

    def test_launch_template_selection(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_autoscaling_group",
                "web",
                {"min_size": 1, "max_size": 1, "launch_template": {"id": "lt-1", "name": "web"}},
            )
        assert exc_info.value.path == "aws_autoscaling_group.web.launch_template"

    def test_instance_type_pattern(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError):
            context.declare(
                "aws_launch_template",
                "web",
                {"name_prefix": "web-", "image_id": "ami-0c02fb55956c7d316", "instance_type": "huge"},
            )


# ###############
# Database
# ###############


class TestDatabase:
    def test_db_instance(self, context: SynthesisContext) -> None:
        database = context.declare(
            "aws_db_instance",
            "main",
            {"identifier": "shop-db", "engine": "postgres", "instance_class": "db.t3.micro"},
        )
        assert database.computed == {"effective_port": 5432, "is_backed_up": True}
        assert "endpoint" in database.outputs

    def test_multi_az_needs_subnet_group(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_db_instance",
                "main",
                {"identifier": "shop-db", "engine": "mysql", "instance_class": "db.t3.micro", "multi_az": True},
            )
        assert exc_info.value.path == "aws_db_instance.main.db_subnet_group_name"

    def test_final_snapshot_named(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_db_instance",
                "main",
                {
                    "identifier": "shop-db",
                    "engine": "mysql",
                    "instance_class": "db.t3.micro",
                    "skip_final_snapshot": False,
                },
            )
        assert exc_info.value.path == "aws_db_instance.main.final_snapshot_identifier"

    def test_cache_cluster_output_path(self, context: SynthesisContext) -> None:
        cluster = context.declare(
            "aws_elasticache_cluster", "cache", {"cluster_id": "shop-cache", "node_type": "cache.t3.micro"}
        )
        assert cluster["cache_nodes[0].address"].render() == "${aws_elasticache_cluster.cache.cache_nodes[0].address}"
        assert cluster.compute("effective_port") == 6379

    def test_cache_security_groups_need_subnet_group(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_elasticache_cluster",
                "cache",
                {"cluster_id": "shop-cache", "node_type": "cache.t3.micro", "security_group_ids": ["sg-1"]},
            )
        assert exc_info.value.path == "aws_elasticache_cluster.cache.subnet_group_name"


# ###############
# Edge and monitoring
# ###############


class TestEdge:
    def test_record_needs_records_or_alias(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError):
            context.declare("aws_route53_record", "www", {"zone_id": "Z1", "name": "example.com", "type": "A"})

    def test_plain_records_need_ttl(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_route53_record",
                "www",
                {"zone_id": "Z1", "name": "example.com", "type": "A", "records": ["192.0.2.1"]},
            )
        assert exc_info.value.path == "aws_route53_record.www.ttl"

    def test_alias_record(self, context: SynthesisContext) -> None:
        record = context.declare(
            "aws_route53_record",
            "www",
            {"zone_id": "Z1", "name": "example.com", "type": "A", "alias": {"name": "d.example.net", "zone_id": "Z2"}},
        )
        assert record.compute("is_alias") is True

    def test_distribution_aliases_need_certificate(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_cloudfront_distribution",
                "cdn",
                {"origin_domain_name": "lb.example.com", "origin_id": "lb", "aliases": ["example.com"]},
            )
        assert exc_info.value.path == "aws_cloudfront_distribution.cdn.acm_certificate_arn"

    def test_zone_domain_pattern(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError):
            context.declare("aws_route53_zone", "zone", {"name": "Not A Domain"})


class TestMonitoring:
    def test_alarm_period(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare(
                "aws_cloudwatch_metric_alarm",
                "cpu",
                {
                    "alarm_name": "cpu",
                    "comparison_operator": "GreaterThanThreshold",
                    "evaluation_periods": 1,
                    "metric_name": "CPUUtilization",
                    "namespace": "AWS/EC2",
                    "threshold": 80.0,
                    "period": 45,
                },
            )
        assert exc_info.value.path == "aws_cloudwatch_metric_alarm.cpu.period"

    def test_dashboard(self, context: SynthesisContext) -> None:
        body = dashboard_body([{"type": "text", "properties": {"markdown": "hi"}}])
        dashboard = context.declare(
            "aws_cloudwatch_dashboard", "main", {"dashboard_name": "main", "dashboard_body": body}
        )

        assert json.loads(body) == {"widgets": [{"type": "text", "properties": {"markdown": "hi"}}]}
        assert dashboard.compute("widget_count") == 1

    def test_dashboard_body_must_be_json(self, context: SynthesisContext) -> None:
        with pytest.raises(ValidationError) as exc_info:
            context.declare("aws_cloudwatch_dashboard", "main", {"dashboard_name": "main", "dashboard_body": "{"})
        assert exc_info.value.path == "aws_cloudwatch_dashboard.main.dashboard_body"


# ###############
# Naming
# ###############


def test_resource_name() -> None:
    assert resource_name("shop_web", "alb") == "shop-web-alb"
    assert resource_name("Shop__Web--LB") == "shop-web-lb"
    assert resource_name("1st") == "r-1st"
    assert resource_name("a" * 40) == "a" * 32
    assert resource_name("abc", "def", limit=4) == "abc"


def test_name_tags() -> None:
    tags = {"Team": "web"}
    assert name_tags(tags, "shop") == {"Team": "web", "Name": "shop"}
    assert tags == {"Team": "web"}
