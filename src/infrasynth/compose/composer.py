# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Composition of resources and sub-components into aggregate references.

A :class:`Composer` drives one composition through a fixed sequence of states::

    MERGING_ATTRS -> COMPOSING_MEMBERS -> DERIVING_OUTPUTS -> DERIVING_COMPUTED -> DONE

Steps may skip ahead but never go back. Members are composed in the order the
architecture code requests them, and a member may only be read after it has
been composed, so later members can safely embed earlier members' references.

When a requested capability has no registered builder, the composer calls the
caller-supplied fallback instead, which declares an equivalent minimal set of
raw resources. Both paths must expose the same promised outputs, so callers
only observe which path ran through :attr:`AggregateReference.fallback_members`.

Any exception moves the composer to ``FAILED``; no aggregate is returned and
every further step is rejected.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any

from infrasynth.compose.aggregate import AggregateReference, ComputedFn, Member, member_references
from infrasynth.errors import OrderingViolationError, OutputContractError, UnknownKindError
from infrasynth.reference import Reference, collect_references, render_placeholders
from infrasynth.registry import Registry, components
from infrasynth.schema.schema import Attributes, Schema
from infrasynth.synthesis.context import SynthesisContext
from infrasynth.synthesis.resource import ResourceRef

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

# Builder contract shared by registered components and fallbacks.
Builder = Callable[[SynthesisContext, str, Mapping[str, Any]], Member]


class CompositionState(enum.IntEnum):
    """States of a composition, in the only order they may be visited."""

    MERGING_ATTRS = 1
    COMPOSING_MEMBERS = 2
    DERIVING_OUTPUTS = 3
    DERIVING_COMPUTED = 4
    DONE = 5
    FAILED = 6


class Composer:
    """Builds one component or architecture into an :class:`AggregateReference`.

    Args:
        context: Synthesis context every member declares into.
        type: Composition type, e.g. ``web_application``.
        name: Name of this composition; member names are derived from it.
        registry: Registry consulted for sub-component capabilities.
            Defaults to the process-wide :data:`~infrasynth.registry.components`.
    """

    def __init__(
        self,
        context: SynthesisContext,
        type: str,
        name: str,
        *,
        registry: Registry | None = None,
    ) -> None:
        self.context = context
        self.type = type
        self.name = name
        self._registry: Registry = registry if registry is not None else components
        self._state = CompositionState.MERGING_ATTRS
        self._attributes: Attributes | None = None
        self._members: dict[str, Member] = {}
        self._fallbacks: set[str] = set()
        self._outputs: dict[str, Any] = {}
        self._computed: dict[str, ComputedFn] = {}

    @property
    def state(self) -> CompositionState:
        """The current composition state."""
        return self._state

    @property
    def attributes(self) -> Attributes:
        """The merged attributes.

        Raises:
            OrderingViolationError: If attributes have not been merged yet.
        """
        if self._attributes is None:
            raise OrderingViolationError(f"{self.type} '{self.name}': attributes have not been merged")
        return self._attributes

    def member_name(self, slot: str) -> str:
        """Logical name given to the member composed in *slot*."""
        return f"{self.name}_{slot}"

    def merge_attributes(self, schema: Schema, *layers: Mapping[str, Any] | None) -> Attributes:
        """Deep-merge attribute layers and validate the result against *schema*.

        Earlier layers are defaults (e.g. environment profiles); later layers
        override them. References embedded in any layer are rendered as
        placeholders before validation.

        Raises:
            ValidationError: If the merged attributes are invalid.
            OrderingViolationError: If attributes were already merged.
        """
        with self._step(CompositionState.MERGING_ATTRS):
            if self._attributes is not None:
                raise OrderingViolationError(f"{self.type} '{self.name}': attributes were already merged")
            merged = merge_layers(*layers)
            self.context.check_references(merged)
            self._attributes = schema.instantiate(render_placeholders(merged))
            return self._attributes

    def compose(
        self,
        slot: str,
        capability: str,
        attributes: Mapping[str, Any],
        *,
        fallback: Builder | None = None,
        provides: Iterable[str] = (),
    ) -> Member:
        """Compose a sub-component into *slot*.

        Args:
            slot: Member slot, unique within this composition.
            capability: Registry name of the preferred builder.
            attributes: Attributes handed to whichever builder runs.
            fallback: Builder declaring equivalent raw resources, used when
                *capability* is not registered.
            provides: Output names the member must expose on either path.

        Returns:
            The composed member.

        Raises:
            UnknownKindError: If *capability* is not registered and no fallback is given.
            OutputContractError: If the member lacks a promised output.
            OrderingViolationError: If *slot* was already composed or the step is out of order.
        """
        with self._step(CompositionState.COMPOSING_MEMBERS):
            self._claim(slot)
            member_name = self.member_name(slot)
            builder = self._registry.lookup(capability)
            if builder is not None:
                logger.debug("Composing %s '%s' via registered %s", self.type, member_name, capability)
                member = builder(self.context, member_name, attributes)
            elif fallback is not None:
                logger.info("No %s registered for '%s'; declaring it directly", capability, member_name)
                member = fallback(self.context, member_name, attributes)
                self._fallbacks.add(slot)
            else:
                raise UnknownKindError(self._registry.label, capability)
            _check_provides(member, provides, capability)
            self._members[slot] = member
            return member

    def declare(self, slot: str, kind: str, attributes: Mapping[str, Any] | None = None) -> ResourceRef:
        """Declare a single raw resource as the member in *slot*."""
        with self._step(CompositionState.COMPOSING_MEMBERS):
            self._claim(slot)
            resource = self.context.declare(kind, self.member_name(slot), attributes)
            self._members[slot] = resource
            return resource

    def add(self, slot: str, member: Member) -> Member:
        """Record an already-built member in *slot*."""
        with self._step(CompositionState.COMPOSING_MEMBERS):
            self._claim(slot)
            for ref in member_references(member):
                if not self.context.owns(ref):
                    raise OrderingViolationError(
                        f"{self.type} '{self.name}': member '{slot}' was not declared in this synthesis context"
                    )
            self._members[slot] = member
            return member

    def has(self, slot: str) -> bool:
        """Return True if a member has been composed in *slot*."""
        return slot in self._members

    def member(self, slot: str) -> Member:
        """Return the member composed in *slot*.

        Raises:
            OrderingViolationError: If nothing has been composed in *slot* yet.
        """
        try:
            return self._members[slot]
        except KeyError:
            raise OrderingViolationError(
                f"{self.type} '{self.name}': member '{slot}' is referenced before it was composed"
            ) from None

    def output(self, name: str, value: Any) -> None:
        """Record a curated output.

        Raises:
            OrderingViolationError: If *value* embeds a reference that no
                composed member produced, or the step is out of order.
        """
        with self._step(CompositionState.DERIVING_OUTPUTS):
            known = set(self._known_references())
            for ref in collect_references(value):
                if ref not in known or not self.context.owns(ref):
                    raise OrderingViolationError(
                        f"{self.type} '{self.name}': output '{name}' references {ref.render()}, "
                        "which no composed member produced"
                    )
            self._outputs[name] = _frozen(value)

    def computed(self, name: str, fn: ComputedFn) -> None:
        """Register a computed property evaluated from the finished aggregate."""
        with self._step(CompositionState.DERIVING_COMPUTED):
            self._computed[name] = fn

    def finish(self) -> AggregateReference:
        """Complete the composition and return its aggregate reference."""
        with self._step(CompositionState.DONE):
            aggregate = AggregateReference(
                type=self.type,
                name=self.name,
                attributes=self._attributes,
                member_resources=MappingProxyType(dict(self._members)),
                outputs=MappingProxyType(dict(self._outputs)),
                fallback_members=frozenset(self._fallbacks),
                computed_properties=MappingProxyType(dict(self._computed)),
            )
            logger.debug(
                "Composed %s '%s' with %d member(s), %d via fallback",
                self.type,
                self.name,
                len(self._members),
                len(self._fallbacks),
            )
            return aggregate

    @contextmanager
    def _step(self, target: CompositionState) -> Iterator[None]:
        if self._state in (CompositionState.DONE, CompositionState.FAILED):
            raise OrderingViolationError(
                f"{self.type} '{self.name}': composition is {self._state.name}; no further steps are allowed"
            )
        if target < self._state:
            raise OrderingViolationError(
                f"{self.type} '{self.name}': cannot return to {target.name} from {self._state.name}"
            )
        self._state = target
        try:
            yield
        except Exception:
            self._state = CompositionState.FAILED
            raise

    def _claim(self, slot: str) -> None:
        if slot in self._members:
            raise OrderingViolationError(f"{self.type} '{self.name}': member '{slot}' was already composed")

    def _known_references(self) -> Iterator[Reference]:
        for member in self._members.values():
            yield from member_references(member)


def merge_layers(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Deep-merge mappings; later layers win, nested mappings merge recursively.

    ``None`` layers are skipped. Non-mapping values (including lists) are
    replaced wholesale.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer is None:
            continue
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(current, Mapping) and isinstance(value, Mapping):
                merged[key] = merge_layers(current, value)
            elif isinstance(value, Mapping):
                merged[key] = merge_layers(value)
            else:
                merged[key] = value
    return merged


# ################
# Implementation
# ################


def _frozen(value: Any) -> Any:
    """Return *value* with lists turned into tuples and mappings made read-only, recursively."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _frozen(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_frozen(item) for item in value)
    return value


def _check_provides(member: Member, provides: Iterable[str], capability: str) -> None:
    for output in provides:
        if output not in member.outputs:
            raise OutputContractError(f"Member built for '{capability}' does not provide output '{output}'")
