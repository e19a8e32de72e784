# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Template synthesis: from a parsed template file to one synthesis document.

Synthesis runs in two phases. The load phase imports the bundled kinds,
components and architectures plus any template plugins, then freezes every
registry. The build phase creates one fresh context, builds each architecture
into it in template order, records template outputs, and emits.
"""

from __future__ import annotations

import logging
from typing import Any

from infrasynth.compose import AggregateReference, merge_layers
from infrasynth.reference import Reference, collect_references
from infrasynth.registry import architectures, freeze_all, load_builtins, load_plugins
from infrasynth.synthesis.context import SynthesisContext
from infrasynth.synthesis.document import SynthesisDocument
from infrasynth.workspace.config import TemplateConfig

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def load_phase(plugins: list[str] | tuple[str, ...] = ()) -> None:
    """Import the bundled and plugin modules, then freeze the registries.

    Calling it again after the registries are frozen is harmless as long as
    no new registrations happen.
    """
    load_builtins()
    if plugins:
        load_plugins(*plugins)
    freeze_all()


def build(config: TemplateConfig, context: SynthesisContext | None = None) -> dict[str, AggregateReference]:
    """Build every architecture of *config* into *context*.

    Returns:
        The aggregate of each architecture, keyed by architecture name.

    Raises:
        UnknownKindError: If an architecture type is not registered.
        SynthesisError: If any architecture fails to build.
    """
    context = context if context is not None else SynthesisContext()
    built: dict[str, AggregateReference] = {}
    for entry in config.architectures:
        builder = architectures.get(entry.type)
        logger.debug("Building %s '%s'", entry.type, entry.name)
        built[entry.name] = builder(context, entry.name, merge_layers(config.defaults, entry.attributes))
    return built


def synthesize(config: TemplateConfig) -> SynthesisDocument:
    """Run both synthesis phases for *config* and return the emitted document.

    Each architecture output that is a literal or embeds references becomes a
    template output named ``<architecture>_<output>``.
    """
    load_phase(config.plugins)
    context = SynthesisContext()
    for name, aggregate in build(config, context).items():
        for output, value in aggregate.outputs.items():
            if _is_output_value(value):
                context.add_output(f"{name}_{output}", value)
    document = context.emit()
    logger.info(
        "Synthesized %d resource(s) across %d architecture(s)",
        document.resource_count(),
        len(config.architectures),
    )
    return document


# ################
# Implementation
# ################


def _is_output_value(value: Any) -> bool:
    if isinstance(value, (str, int, float, bool, Reference)):
        return True
    if isinstance(value, (list, tuple)):
        return all(isinstance(item, (str, int, float, bool, Reference)) for item in value) or bool(
            collect_references(value)
        )
    return False
