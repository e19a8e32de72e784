# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Composition of resources into components and architectures."""

from infrasynth.compose.aggregate import AggregateReference, ComputedFn, Member, member_references
from infrasynth.compose.composer import Builder, Composer, CompositionState, merge_layers

__all__ = [
    "AggregateReference",
    "Builder",
    "Composer",
    "CompositionState",
    "ComputedFn",
    "Member",
    "member_references",
    "merge_layers",
]
