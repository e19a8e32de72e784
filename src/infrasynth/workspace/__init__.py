# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Template file loading."""

from infrasynth.workspace.config import (
    ArchitectureEntry,
    TemplateConfig,
    TemplateConfigError,
    find_template,
    load_template_config,
)

__all__ = [
    "ArchitectureEntry",
    "TemplateConfig",
    "TemplateConfigError",
    "find_template",
    "load_template_config",
]
