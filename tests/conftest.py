# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Shared pytest fixtures."""

from collections.abc import Iterator

import pytest

from infrasynth.registry import architectures, components, load_builtins, resource_kinds
from infrasynth.synthesis.context import SynthesisContext

load_builtins()


@pytest.fixture(autouse=True)
def _reopen_registries() -> Iterator[None]:
    """Synthesis freezes the process-wide registries; reopen them after every test."""
    yield
    for registry in (resource_kinds, components, architectures):
        registry._frozen = False


@pytest.fixture
def context() -> SynthesisContext:
    """A fresh synthesis context over the bundled resource kinds."""
    return SynthesisContext()
