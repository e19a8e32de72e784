# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Resource declaration, the synthesis context, and the emitted document."""

from infrasynth.synthesis.context import LOGICAL_NAME_PATTERN, ResourceDeclaration, SynthesisContext
from infrasynth.synthesis.document import (
    SynthesisDocument,
    deserialize,
    read_document,
    serialize,
    write_document,
)
from infrasynth.synthesis.resource import ComputedProperty, ResourceKind, ResourceRef, resource_kind

__all__ = [
    "LOGICAL_NAME_PATTERN",
    "ResourceDeclaration",
    "SynthesisContext",
    "SynthesisDocument",
    "serialize",
    "deserialize",
    "write_document",
    "read_document",
    "ComputedProperty",
    "ResourceKind",
    "ResourceRef",
    "resource_kind",
]
