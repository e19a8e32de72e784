# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Field descriptions shared by the AWS resource kinds."""

from __future__ import annotations

import ipaddress

from infrasynth.schema import LIST, MAPPING, STRING, FieldSpec, attribute

# ###############
# Public Interface
# ###############

CIDR_PATTERN = r"^(\d{1,3}\.){3}\d{1,3}/\d{1,2}$"
PORT_RANGE = {"ge": 0, "le": 65535}


def _valid_cidr(value: str) -> bool:
    try:
        ipaddress.ip_network(value, strict=True)
    except ValueError:
        return False
    return True


def cidr_field(**kwargs) -> FieldSpec:
    """A string field holding an IPv4 network in CIDR notation."""
    return attribute(
        STRING,
        pattern=CIDR_PATTERN,
        checks=[(_valid_cidr, "must be a valid IPv4 network with no host bits set")],
        **kwargs,
    )


def identifier_field(**kwargs) -> FieldSpec:
    """A string field holding a provider identifier, usually a reference placeholder."""
    return attribute(STRING, min_length=1, **kwargs)


def identifier_list(**kwargs) -> FieldSpec:
    return attribute(LIST, items=attribute(STRING, min_length=1), default=kwargs.pop("default", []), **kwargs)


def tags_field() -> FieldSpec:
    return attribute(MAPPING, default={}, description="Resource tags")

