# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""The synthesis document and its JSON serialization.

The document groups resource blocks by kind, mirroring the layout a
Terraform-style JSON configuration consumer expects::

    {
      "resource": {"aws_vpc": {"main": {"cidr_block": "10.0.0.0/16"}}},
      "output": {"vpc_id": {"value": "${aws_vpc.main.id}"}}
    }

Serialization preserves insertion order and never sorts keys, so identical
declaration sequences always produce byte-identical output.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

# ###############
# Public Interface
# ###############


class SynthesisDocument:
    """Ordered, grouped-by-kind resource blocks plus template outputs."""

    def __init__(
        self,
        resources: dict[str, dict[str, dict[str, Any]]],
        outputs: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self._resources = copy.deepcopy(resources)
        self._outputs = copy.deepcopy(outputs or {})

    @property
    def kinds(self) -> tuple[str, ...]:
        """Resource kinds present, in first-declaration order."""
        return tuple(self._resources)

    @property
    def output_names(self) -> tuple[str, ...]:
        """Template output names, in insertion order."""
        return tuple(self._outputs)

    def block(self, kind: str, name: str) -> dict[str, Any]:
        """Return a copy of one resource block.

        Raises:
            KeyError: If no such block exists.
        """
        return copy.deepcopy(self._resources[kind][name])

    def names(self, kind: str) -> tuple[str, ...]:
        """Logical names declared for *kind*, in declaration order."""
        return tuple(self._resources.get(kind, {}))

    def resource_count(self) -> int:
        """Total number of resource blocks."""
        return sum(len(blocks) for blocks in self._resources.values())

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible copy of the document."""
        data: dict[str, Any] = {"resource": copy.deepcopy(self._resources)}
        if self._outputs:
            data["output"] = copy.deepcopy(self._outputs)
        return data

    def to_json(self) -> str:
        """Serialize to indented JSON (see :func:`serialize`)."""
        return serialize(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SynthesisDocument):
            return NotImplemented
        return self.to_json() == other.to_json()

    def __repr__(self) -> str:
        return f"SynthesisDocument({self.resource_count()} resources, {len(self._outputs)} outputs)"


def serialize(document: SynthesisDocument) -> str:
    """Serialize a document to indented JSON with a trailing newline."""
    return json.dumps(document.to_dict(), indent=2, ensure_ascii=False) + "\n"


def deserialize(data: str) -> SynthesisDocument:
    """Deserialize a document from a JSON string.

    Args:
        data: JSON string produced by :func:`serialize`.

    Returns:
        The reconstructed :class:`SynthesisDocument`.

    Raises:
        ValueError: If the data is not a JSON object with a ``resource`` mapping.
    """
    obj = json.loads(data)
    if not isinstance(obj, dict) or not isinstance(obj.get("resource"), dict):
        raise ValueError("Synthesis document must be a JSON object with a 'resource' mapping")
    outputs = obj.get("output", {})
    if not isinstance(outputs, dict):
        raise ValueError("Synthesis document 'output' must be a mapping")
    return SynthesisDocument(resources=obj["resource"], outputs=outputs)


def write_document(document: SynthesisDocument, path: Path) -> None:
    """Write a document to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize(document), encoding="utf-8")


def read_document(path: Path) -> SynthesisDocument:
    """Read and deserialize a document from *path*."""
    return deserialize(path.read_text(encoding="utf-8"))
