# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""The aggregate reference returned by components and architectures."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from infrasynth.reference import Reference
from infrasynth.schema.schema import Attributes
from infrasynth.synthesis.resource import ResourceRef

# ###############
# Public Interface
# ###############

# A member of a composition: a single declared resource or a nested aggregate.
Member = Union[ResourceRef, "AggregateReference"]

# A derived property: a pure function of the finished aggregate.
ComputedFn = Callable[["AggregateReference"], Any]


@dataclass(frozen=True, eq=False)
class AggregateReference:
    """The immutable result of one composition.

    Attributes:
        type: Component or architecture type (e.g. ``secure_vpc``).
        name: Name the composition was built under.
        attributes: Merged, validated attributes of the composition.
        member_resources: Members keyed by slot, in composition order.
        outputs: Curated outputs: references into members, or literals.
        fallback_members: Slots that were synthesized through the fallback path.
    """

    type: str
    name: str
    attributes: Attributes | None
    member_resources: Mapping[str, Member]
    outputs: Mapping[str, Any]
    fallback_members: frozenset[str] = frozenset()
    computed_properties: Mapping[str, ComputedFn] = field(default_factory=dict, repr=False)

    def __getitem__(self, output: str) -> Any:
        try:
            return self.outputs[output]
        except KeyError:
            raise KeyError(f"{self.type} '{self.name}' has no output '{output}'") from None

    def member(self, slot: str) -> Member | None:
        """Return the member composed in *slot*, or None if the slot is absent."""
        return self.member_resources.get(slot)

    def has_member(self, slot: str) -> bool:
        """Return True if a member was composed in *slot*."""
        return slot in self.member_resources

    def used_fallback(self, slot: str) -> bool:
        """Return True if the member in *slot* was synthesized through the fallback path."""
        return slot in self.fallback_members

    @property
    def computed(self) -> dict[str, Any]:
        """Evaluate every computed property. Recomputed on each access."""
        return {name: fn(self) for name, fn in self.computed_properties.items()}

    def compute(self, name: str) -> Any:
        """Evaluate a single computed property."""
        return self.computed_properties[name](self)

    def references(self) -> Iterator[Reference]:
        """Every output reference of every member, recursively."""
        for member in self.member_resources.values():
            yield from member_references(member)

    def resources(self) -> Iterator[ResourceRef]:
        """Every declared resource reachable from this aggregate, in composition order."""
        for member in self.member_resources.values():
            if isinstance(member, ResourceRef):
                yield member
            else:
                yield from member.resources()


def member_references(member: Member) -> Iterator[Reference]:
    """Every reference a member exposes: its outputs and, for aggregates, its members' outputs."""
    if isinstance(member, ResourceRef):
        yield from member.outputs.values()
        return
    yield from member.references()
    for value in member.outputs.values():
        if isinstance(value, Reference):
            yield value
        elif isinstance(value, (list, tuple)):
            yield from (item for item in value if isinstance(item, Reference))
