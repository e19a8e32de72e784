# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Symbolic references to resource outputs that only exist after deployment.

A :class:`Reference` is opaque data. It is minted when a resource is declared,
rendered as an interpolation placeholder when embedded in another resource's
attributes, and compared structurally. It is never resolved to a real value
inside this package; the downstream configuration consumer does that.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

# ###############
# Public Interface
# ###############

PLACEHOLDER_PATTERN = re.compile(r"^\$\{([A-Za-z0-9_-]+)\.([A-Za-z0-9_-]+)\.([A-Za-z0-9_.\[\]*-]+)\}$")


@dataclass(frozen=True)
class Reference:
    """Handle to the future value of one output of one declared resource.

    Equality and hashing use ``(kind, logical_name, output_path)`` only. The
    ``scope`` identifies the synthesis context that minted the reference and
    is used to reject references leaking across contexts.

    Attributes:
        kind: Resource kind (e.g. ``aws_vpc``).
        logical_name: Logical name of the declaration within its context.
        output_path: Dotted output path (e.g. ``id`` or ``endpoint.address``).
        scope: Identifier of the minting context.
    """

    kind: str
    logical_name: str
    output_path: str
    scope: str = field(default="", compare=False, repr=False)

    def render(self) -> str:
        """Return the interpolation placeholder, e.g. ``${aws_vpc.main.id}``."""
        return "${" + f"{self.kind}.{self.logical_name}.{self.output_path}" + "}"

    def __str__(self) -> str:
        return self.render()


def mint(kind: str, logical_name: str, output_path: str, *, scope: str = "") -> Reference:
    """Create a reference to ``kind.logical_name.output_path``."""
    return Reference(kind=kind, logical_name=logical_name, output_path=output_path, scope=scope)


def is_placeholder(value: Any) -> bool:
    """Return True if *value* is a rendered reference placeholder string."""
    return isinstance(value, str) and PLACEHOLDER_PATTERN.match(value) is not None


def render_placeholders(value: Any) -> Any:
    """Replace every :class:`Reference` inside *value* with its placeholder string.

    Mappings, lists, and tuples are walked recursively; mapping key order is
    preserved. Any other value is returned unchanged.
    """
    if isinstance(value, Reference):
        return value.render()
    if isinstance(value, Mapping):
        return {key: render_placeholders(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [render_placeholders(item) for item in value]
    return value


def collect_references(value: Any) -> list[Reference]:
    """Return every :class:`Reference` found inside *value*, depth first."""
    if isinstance(value, Reference):
        return [value]
    if isinstance(value, Mapping):
        return [ref for item in value.values() for ref in collect_references(item)]
    if isinstance(value, (list, tuple)):
        return [ref for item in value for ref in collect_references(item)]
    return []
