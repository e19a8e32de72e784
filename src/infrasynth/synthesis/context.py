# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""The synthesis context: an append-only log of resource declarations.

One context is created per template build. Builders declare resources into it,
receive symbolic references to their future outputs, and embed those
references into later declarations. When the build finishes, :meth:`emit`
folds the declaration log into a deterministic document.

A context is not thread-safe and is not meant to be: each build owns its
context exclusively. Independent contexts may be built concurrently.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from infrasynth.errors import DuplicateDeclarationError, ForeignReferenceError, ValidationError
from infrasynth.reference import Reference, collect_references, mint, render_placeholders
from infrasynth.registry import Registry, resource_kinds
from infrasynth.schema.schema import Attributes
from infrasynth.synthesis.document import SynthesisDocument
from infrasynth.synthesis.resource import ResourceKind, ResourceRef

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

LOGICAL_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


@dataclass(frozen=True)
class ResourceDeclaration:
    """One resource recorded in a synthesis context."""

    kind: str
    logical_name: str
    attributes: Attributes


class SynthesisContext:
    """Session-scoped accumulator of resource declarations.

    Args:
        registry: Resource-kind registry used to resolve kinds. Defaults to the
            process-wide :data:`~infrasynth.registry.resource_kinds`.
    """

    def __init__(self, *, registry: Registry | None = None) -> None:
        self.scope = uuid.uuid4().hex
        self._registry: Registry = registry if registry is not None else resource_kinds
        self._declarations: list[ResourceDeclaration] = []
        self._index: dict[tuple[str, str], ResourceDeclaration] = {}
        self._outputs: dict[str, dict[str, Any]] = {}

    @property
    def declarations(self) -> tuple[ResourceDeclaration, ...]:
        """All declarations, in declaration order."""
        return tuple(self._declarations)

    def declare(
        self,
        kind: str,
        logical_name: str,
        raw_attributes: Mapping[str, Any] | None = None,
    ) -> ResourceRef:
        """Validate and record one resource declaration.

        Args:
            kind: Registered resource-kind name.
            logical_name: Name unique among declarations of *kind* in this context.
            raw_attributes: Raw attribute mapping. References minted by this
                context may appear anywhere inside it and are embedded as
                placeholder strings.

        Returns:
            The resource's output bundle.

        Raises:
            UnknownKindError: If *kind* is not registered.
            ValidationError: If the logical name or the attributes are invalid;
                the path is prefixed with ``kind.logical_name``.
            ForeignReferenceError: If the attributes embed a reference minted
                by another context.
            DuplicateDeclarationError: If ``(kind, logical_name)`` is already declared.
        """
        resource: ResourceKind = self._registry.get(kind)
        if not LOGICAL_NAME_PATTERN.match(logical_name):
            raise ValidationError(kind, f"invalid logical name '{logical_name}'")

        self.check_references(raw_attributes)
        try:
            attributes = resource.schema.instantiate(render_placeholders(raw_attributes or {}))
        except ValidationError as exc:
            raise exc.prefixed(f"{kind}.{logical_name}") from exc

        key = (kind, logical_name)
        if key in self._index:
            raise DuplicateDeclarationError(kind, logical_name)

        declaration = ResourceDeclaration(kind=kind, logical_name=logical_name, attributes=attributes)
        self._declarations.append(declaration)
        self._index[key] = declaration
        logger.debug("Declared %s.%s", kind, logical_name)

        outputs = {path: mint(kind, logical_name, path, scope=self.scope) for path in resource.outputs}
        return ResourceRef(
            kind=kind,
            name=logical_name,
            attributes=attributes,
            outputs=MappingProxyType(outputs),
            properties=resource.computed,
        )

    def reference(self, kind: str, logical_name: str, output_path: str) -> Reference:
        """Mint a reference to an output of a resource declared in this context.

        Raises:
            ForeignReferenceError: If no such declaration exists in this context.
        """
        if (kind, logical_name) not in self._index:
            raise ForeignReferenceError(f"Cannot reference '{kind}.{logical_name}': not declared in this context")
        return mint(kind, logical_name, output_path, scope=self.scope)

    def owns(self, reference: Reference) -> bool:
        """Return True if *reference* was minted by this context for one of its declarations."""
        return reference.scope == self.scope and (reference.kind, reference.logical_name) in self._index

    def add_output(self, name: str, value: Any, *, description: str | None = None) -> None:
        """Record a template-level output.

        Raises:
            DuplicateDeclarationError: If an output named *name* already exists.
            ForeignReferenceError: If *value* embeds a reference from another context.
        """
        if name in self._outputs:
            raise DuplicateDeclarationError("output", name)
        self.check_references(value)
        block: dict[str, Any] = {"value": render_placeholders(value)}
        if description is not None:
            block["description"] = description
        self._outputs[name] = block

    def emit(self) -> SynthesisDocument:
        """Fold the declaration log into a document.

        Resources are grouped by kind in order of each kind's first
        declaration; within a kind, blocks keep declaration order.
        """
        grouped: dict[str, dict[str, dict[str, Any]]] = {}
        for declaration in self._declarations:
            grouped.setdefault(declaration.kind, {})[declaration.logical_name] = declaration.attributes.to_block()
        outputs = {name: dict(block) for name, block in self._outputs.items()}
        return SynthesisDocument(resources=grouped, outputs=outputs)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self._declarations)

    def check_references(self, value: Any) -> None:
        """Raise ForeignReferenceError if *value* embeds a reference this context does not own."""
        for ref in collect_references(value):
            if not self.owns(ref):
                raise ForeignReferenceError(
                    f"Reference '{ref.render()}' was not minted by this synthesis context"
                )
