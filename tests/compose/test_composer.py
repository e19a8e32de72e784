# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the composer state machine, fallbacks, and attribute layering."""

from collections.abc import Mapping
from typing import Any

import pytest

from infrasynth.compose import AggregateReference, Composer, CompositionState, merge_layers
from infrasynth.errors import (
    OrderingViolationError,
    OutputContractError,
    UnknownKindError,
    ValidationError,
)
from infrasynth.reference import mint
from infrasynth.registry import Registry
from infrasynth.schema import MAPPING, STRING, attribute, define
from infrasynth.synthesis import SynthesisContext

# ###############
# Helpers
# ###############

NETWORK = define(
    "TestNetworkComponent",
    {
        "cidr_block": attribute(STRING, default="10.0.0.0/16"),
        "zone": attribute(STRING, default="us-east-1a"),
        "tags": attribute(MAPPING, default={}),
    },
)


def network_component(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
    composer = Composer(context, "network", name)
    attrs = composer.merge_attributes(NETWORK, attributes)
    vpc = composer.declare("vpc", "aws_vpc", {"cidr_block": attrs.cidr_block, "tags": attrs.tags})
    subnet = composer.declare(
        "subnet",
        "aws_subnet",
        {"vpc_id": vpc.id, "cidr_block": "10.0.0.0/24", "availability_zone": attrs.zone},
    )
    composer.output("vpc_id", vpc.id)
    composer.output("subnet_ids", [subnet.id])
    composer.computed("zone", lambda aggregate: aggregate.attributes.zone)
    return composer.finish()


def network_fallback(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
    composer = Composer(context, "network", name)
    vpc = composer.declare("vpc", "aws_vpc", {"cidr_block": attributes.get("cidr_block", "10.0.0.0/16")})
    composer.output("vpc_id", vpc.id)
    composer.output("subnet_ids", [])
    return composer.finish()


def incomplete_network(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
    composer = Composer(context, "network", name)
    composer.declare("vpc", "aws_vpc", {"cidr_block": "10.0.0.0/16"})
    return composer.finish()


def _registry(**builders: Any) -> Registry:
    registry: Registry = Registry("component")
    for name, builder in builders.items():
        registry.register(name, builder)
    return registry


# ###############
# Normal Cases
# ###############


def test_compose_registered_component(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop", registry=_registry(network=network_component))

    network = composer.compose("network", "network", {}, fallback=network_fallback, provides=("vpc_id",))
    composer.output("vpc_id", network["vpc_id"])
    aggregate = composer.finish()

    assert aggregate.type == "app"
    assert aggregate.name == "shop"
    assert aggregate.attributes is None
    assert aggregate.has_member("network")
    assert not aggregate.used_fallback("network")
    assert aggregate["vpc_id"].render() == "${aws_vpc.shop_network_vpc.id}"
    assert composer.state is CompositionState.DONE


def test_compose_uses_fallback_when_unregistered(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop", registry=_registry())

    network = composer.compose("network", "network", {}, fallback=network_fallback, provides=("vpc_id",))
    aggregate = composer.finish()

    assert aggregate.used_fallback("network")
    assert aggregate.fallback_members == frozenset({"network"})
    assert network["vpc_id"] == mint("aws_vpc", "shop_network_vpc", "id")


def test_fallback_and_component_expose_same_outputs() -> None:
    """Both paths satisfy the same output contract."""
    registered = Composer(SynthesisContext(), "app", "shop", registry=_registry(network=network_component))
    fallback = Composer(SynthesisContext(), "app", "shop", registry=_registry())

    via_component = registered.compose("network", "network", {}, fallback=network_fallback)
    via_fallback = fallback.compose("network", "network", {}, fallback=network_fallback)

    assert set(via_component.outputs) == set(via_fallback.outputs)


def test_member_names_derive_from_composition_name(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop", registry=_registry(network=network_component))
    composer.compose("network", "network", {})
    composer.finish()

    assert context.emit().names("aws_subnet") == ("shop_network_subnet",)


def test_merge_attributes_layers_defaults(context: SynthesisContext) -> None:
    composer = Composer(context, "network", "main")
    attrs = composer.merge_attributes(
        NETWORK, {"zone": "us-east-1b", "tags": {"Team": "a", "Env": "dev"}}, {"tags": {"Env": "prod"}}
    )

    assert attrs.zone == "us-east-1b"
    assert attrs.tags == {"Team": "a", "Env": "prod"}
    assert composer.attributes is attrs
    assert composer.state is CompositionState.MERGING_ATTRS


def test_merge_attributes_renders_references(context: SynthesisContext) -> None:
    vpc = context.declare("aws_vpc", "main", {"cidr_block": "10.0.0.0/16"})
    composer = Composer(context, "network", "main")
    attrs = composer.merge_attributes(NETWORK, {"zone": "us-east-1a", "cidr_block": vpc["cidr_block"]})
    assert attrs.cidr_block == "${aws_vpc.main.cidr_block}"


def test_nested_aggregate_resources_in_order(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop", registry=_registry(network=network_component))
    composer.compose("network", "network", {})
    composer.declare("extra", "aws_vpc", {"cidr_block": "10.1.0.0/16"})
    aggregate = composer.finish()

    assert [resource.name for resource in aggregate.resources()] == [
        "shop_network_vpc",
        "shop_network_subnet",
        "shop_extra",
    ]


def test_computed_properties_are_pure(context: SynthesisContext) -> None:
    network = network_component(context, "main", {"zone": "us-east-1c"})
    assert network.computed == {"zone": "us-east-1c"}
    assert network.compute("zone") == network.compute("zone")


def test_add_existing_member(context: SynthesisContext) -> None:
    vpc = context.declare("aws_vpc", "main", {"cidr_block": "10.0.0.0/16"})
    composer = Composer(context, "app", "shop")
    composer.add("vpc", vpc)
    composer.output("vpc_id", vpc.id)
    assert composer.finish().member("vpc") is vpc


def test_has_and_member(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop")
    assert not composer.has("vpc")
    vpc = composer.declare("vpc", "aws_vpc", {"cidr_block": "10.0.0.0/16"})
    assert composer.has("vpc")
    assert composer.member("vpc") is vpc


def test_output_literal_values(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop")
    composer.output("url", "https://example.com")
    assert composer.finish()["url"] == "https://example.com"


def test_list_outputs_are_frozen(context: SynthesisContext) -> None:
    """List outputs are stored as tuples, so the finished aggregate cannot change."""
    network = network_component(context, "main", {})

    assert isinstance(network["subnet_ids"], tuple)
    with pytest.raises(AttributeError):
        network["subnet_ids"].append("subnet-extra")  # type: ignore[attr-defined]
    assert network["subnet_ids"] == (mint("aws_subnet", "main_subnet", "id"),)


def test_mapping_outputs_are_read_only(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop")
    vpc = composer.declare("vpc", "aws_vpc", {"cidr_block": "10.0.0.0/16"})
    composer.output("network", {"vpc_id": vpc.id, "zones": ["us-east-1a"]})
    network = composer.finish()["network"]

    assert network["zones"] == ("us-east-1a",)
    with pytest.raises(TypeError):
        network["vpc_id"] = "vpc-other"


class TestMergeLayers:
    def test_later_layers_win(self) -> None:
        assert merge_layers({"a": 1, "b": 1}, {"b": 2}) == {"a": 1, "b": 2}

    def test_nested_mappings_merge(self) -> None:
        merged = merge_layers({"scaling": {"min": 1, "max": 2}}, {"scaling": {"max": 5}})
        assert merged == {"scaling": {"min": 1, "max": 5}}

    def test_lists_are_replaced(self) -> None:
        assert merge_layers({"zones": ["a", "b"]}, {"zones": ["c"]}) == {"zones": ["c"]}

    def test_none_layers_are_skipped(self) -> None:
        assert merge_layers(None, {"a": 1}, None) == {"a": 1}

    def test_inputs_are_not_mutated(self) -> None:
        base = {"scaling": {"min": 1}}
        merge_layers(base, {"scaling": {"min": 2}})
        assert base == {"scaling": {"min": 1}}


# ###############
# Error Cases
# ###############


def test_unregistered_without_fallback(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop", registry=_registry())
    with pytest.raises(UnknownKindError):
        composer.compose("network", "network", {})
    assert composer.state is CompositionState.FAILED


def test_missing_promised_output(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop", registry=_registry(network=incomplete_network))
    with pytest.raises(OutputContractError):
        composer.compose("network", "network", {}, provides=("vpc_id",))


def test_member_before_composition(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop")
    with pytest.raises(OrderingViolationError):
        composer.member("network")


def test_cannot_go_back_to_members_after_outputs(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop")
    vpc = composer.declare("vpc", "aws_vpc", {"cidr_block": "10.0.0.0/16"})
    composer.output("vpc_id", vpc.id)
    with pytest.raises(OrderingViolationError):
        composer.declare("subnet", "aws_vpc", {"cidr_block": "10.1.0.0/16"})


def test_cannot_merge_after_composing(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop")
    composer.declare("vpc", "aws_vpc", {"cidr_block": "10.0.0.0/16"})
    with pytest.raises(OrderingViolationError):
        composer.merge_attributes(NETWORK, {})


def test_merge_attributes_only_once(context: SynthesisContext) -> None:
    composer = Composer(context, "network", "main")
    composer.merge_attributes(NETWORK, {})
    with pytest.raises(OrderingViolationError):
        composer.merge_attributes(NETWORK, {})


def test_slot_claimed_once(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop")
    composer.declare("vpc", "aws_vpc", {"cidr_block": "10.0.0.0/16"})
    with pytest.raises(OrderingViolationError):
        composer.declare("vpc", "aws_vpc", {"cidr_block": "10.1.0.0/16"})


def test_output_with_unknown_reference(context: SynthesisContext) -> None:
    """Outputs may only embed references produced by composed members."""
    stray = context.declare("aws_vpc", "stray", {"cidr_block": "10.0.0.0/16"})
    composer = Composer(context, "app", "shop")
    with pytest.raises(OrderingViolationError):
        composer.output("vpc_id", stray.id)


def test_output_with_reference_from_other_context(context: SynthesisContext) -> None:
    """A reference to the same resource name in another context is not a member output."""
    other = SynthesisContext().declare("aws_vpc", "shop_vpc", {"cidr_block": "10.0.0.0/16"})
    composer = Composer(context, "app", "shop")
    composer.declare("vpc", "aws_vpc", {"cidr_block": "10.0.0.0/16"})
    with pytest.raises(OrderingViolationError):
        composer.output("vpc_id", other.id)


def test_add_member_from_other_context(context: SynthesisContext) -> None:
    other = SynthesisContext().declare("aws_vpc", "main", {"cidr_block": "10.0.0.0/16"})
    composer = Composer(context, "app", "shop")
    with pytest.raises(OrderingViolationError):
        composer.add("vpc", other)


def test_failed_composition_rejects_further_steps(context: SynthesisContext) -> None:
    """Any failure moves the composer to FAILED and no aggregate is returned."""
    composer = Composer(context, "network", "main")
    with pytest.raises(ValidationError):
        composer.merge_attributes(NETWORK, {"zone": 3})
    assert composer.state is CompositionState.FAILED
    with pytest.raises(OrderingViolationError):
        composer.finish()


def test_finish_only_once(context: SynthesisContext) -> None:
    composer = Composer(context, "app", "shop")
    composer.finish()
    with pytest.raises(OrderingViolationError):
        composer.finish()


def test_attributes_before_merge(context: SynthesisContext) -> None:
    with pytest.raises(OrderingViolationError):
        _ = Composer(context, "app", "shop").attributes
