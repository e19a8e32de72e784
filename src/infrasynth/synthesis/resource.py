# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Resource kinds and the output bundles returned when one is declared."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from infrasynth.reference import Reference
from infrasynth.registry import Registry, resource_kinds
from infrasynth.schema.schema import Attributes, Schema

if TYPE_CHECKING:
    from infrasynth.synthesis.context import SynthesisContext

# ###############
# Public Interface
# ###############

# A kind-specific derived property: a pure function of the validated attributes.
ComputedProperty = Callable[[Attributes], Any]


@dataclass(frozen=True, eq=False)
class ResourceKind:
    """A declarable resource type: its schema, documented outputs, and computed properties.

    A kind is also the builder registered for it: calling
    ``kind(context, logical_name, attributes)`` declares one resource.

    Attributes:
        name: Kind name, unique within its registry (e.g. ``aws_vpc``).
        schema: Attribute schema instantiated for every declaration.
        outputs: Output paths a Reference is minted for on declaration.
        computed: Named pure functions over the validated attributes.
        description: Optional human-readable summary.
    """

    name: str
    schema: Schema
    outputs: tuple[str, ...] = ("id",)
    computed: Mapping[str, ComputedProperty] = field(default_factory=dict)
    description: str | None = None

    def __call__(
        self,
        context: SynthesisContext,
        logical_name: str,
        attributes: Mapping[str, Any] | None = None,
    ) -> ResourceRef:
        return context.declare(self.name, logical_name, attributes)


@dataclass(frozen=True, eq=False)
class ResourceRef:
    """The result of declaring one resource.

    Attributes:
        kind: Kind name of the declared resource.
        name: Logical name of the declaration.
        attributes: The validated attribute value.
        outputs: One :class:`Reference` per documented output.
    """

    kind: str
    name: str
    attributes: Attributes
    outputs: Mapping[str, Reference]
    properties: Mapping[str, ComputedProperty] = field(default_factory=dict, repr=False)

    def __getitem__(self, output: str) -> Reference:
        try:
            return self.outputs[output]
        except KeyError:
            raise KeyError(f"Resource '{self.kind}.{self.name}' has no output '{output}'") from None

    @property
    def id(self) -> Reference:
        """Shorthand for the ``id`` output."""
        return self["id"]

    @property
    def computed(self) -> dict[str, Any]:
        """Evaluate every computed property. Recomputed on each access."""
        return {name: fn(self.attributes) for name, fn in self.properties.items()}

    def compute(self, name: str) -> Any:
        """Evaluate a single computed property."""
        return self.properties[name](self.attributes)

    def references(self) -> Iterable[Reference]:
        """All output references of this resource."""
        return self.outputs.values()


def resource_kind(
    name: str,
    schema: Schema,
    *,
    outputs: Iterable[str] = ("id",),
    computed: Mapping[str, ComputedProperty] | None = None,
    description: str | None = None,
    registry: Registry | None = None,
) -> ResourceKind:
    """Create a :class:`ResourceKind` and register it.

    Args:
        name: Kind name.
        schema: Attribute schema of the kind.
        outputs: Documented output paths.
        computed: Kind-specific computed properties.
        description: Optional summary.
        registry: Target registry; defaults to the process-wide
            :data:`~infrasynth.registry.resource_kinds`.

    Returns:
        The registered kind.
    """
    kind = ResourceKind(
        name=name,
        schema=schema,
        outputs=tuple(outputs),
        computed=MappingProxyType(dict(computed or {})),
        description=description,
    )
    target = registry if registry is not None else resource_kinds
    target.register(name, kind)
    return kind
