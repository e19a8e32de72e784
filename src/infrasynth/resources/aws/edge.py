# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Content delivery and DNS kinds."""

from __future__ import annotations

from infrasynth.resources.aws._common import identifier_field, tags_field
from infrasynth.schema import BOOLEAN, INTEGER, LIST, STRING, attribute, define, exactly_one_of, requires
from infrasynth.synthesis.resource import resource_kind

# ###############
# Public Interface
# ###############

DOMAIN_PATTERN = r"^([a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}$"

# Fixed hosted zone that every CloudFront distribution lives in.
CLOUDFRONT_ZONE_ID = "Z2FDTNDATAQYW2"

PRICE_CLASSES = ("PriceClass_100", "PriceClass_200", "PriceClass_All")

aws_cloudfront_distribution = resource_kind(
    "aws_cloudfront_distribution",
    define(
        "CloudFrontDistributionAttributes",
        {
            "enabled": attribute(BOOLEAN, default=True),
            "comment": attribute(STRING, optional=True),
            "origin_domain_name": identifier_field(),
            "origin_id": attribute(STRING, min_length=1),
            "origin_protocol_policy": attribute(
                STRING, default="https-only", choices=["http-only", "https-only", "match-viewer"]
            ),
            "viewer_protocol_policy": attribute(
                STRING, default="redirect-to-https", choices=["allow-all", "https-only", "redirect-to-https"]
            ),
            "price_class": attribute(STRING, default="PriceClass_100", choices=PRICE_CLASSES),
            "aliases": attribute(LIST, items=attribute(STRING, pattern=DOMAIN_PATTERN, max_length=253), default=[]),
            "acm_certificate_arn": attribute(STRING, optional=True, pattern=r"^arn:"),
            "default_ttl": attribute(INTEGER, default=3600, ge=0),
            "tags": tags_field(),
        },
        validators=[requires("aliases", "acm_certificate_arn")],
    ),
    outputs=("id", "arn", "domain_name", "hosted_zone_id"),
    computed={"edge_locations": lambda attrs: attrs.price_class.removeprefix("PriceClass_")},
)

aws_route53_zone = resource_kind(
    "aws_route53_zone",
    define(
        "Route53ZoneAttributes",
        {
            "name": attribute(STRING, pattern=DOMAIN_PATTERN, max_length=253),
            "comment": attribute(STRING, default="Managed by InfraSynth"),
            "force_destroy": attribute(BOOLEAN, default=False),
            "tags": tags_field(),
        },
    ),
    outputs=("id", "zone_id", "name_servers", "arn"),
)

ALIAS = define(
    "Route53Alias",
    {
        "name": identifier_field(),
        "zone_id": identifier_field(),
        "evaluate_target_health": attribute(BOOLEAN, default=True),
    },
)

aws_route53_record = resource_kind(
    "aws_route53_record",
    define(
        "Route53RecordAttributes",
        {
            "zone_id": identifier_field(),
            "name": attribute(STRING, min_length=1),
            "type": attribute(STRING, choices=["A", "AAAA", "CNAME", "TXT", "MX", "NS"]),
            "ttl": attribute(INTEGER, optional=True, ge=0),
            "records": attribute(LIST, items=STRING, default=[]),
            "alias": attribute(ALIAS, optional=True),
        },
        validators=[exactly_one_of("records", "alias"), requires("records", "ttl")],
    ),
    outputs=("id", "fqdn"),
    computed={"is_alias": lambda attrs: attrs.alias is not None},
)
