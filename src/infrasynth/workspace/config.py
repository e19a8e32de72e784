# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the InfraSynth template file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ###############
# Public Interface
# ###############

TEMPLATE_FILE_NAME = "infrasynth.yaml"
DEFAULT_OUTPUT = "infrasynth.tf.json"


class TemplateConfigError(Exception):
    """Raised when a template file is invalid or cannot be loaded."""


@dataclass
class ArchitectureEntry:
    """One architecture to synthesize.

    Attributes:
        type: Registered architecture name (e.g. ``web_application``).
        name: Instance name; every logical name of its resources derives from it.
        attributes: Caller attributes, merged over the template defaults.
    """

    type: str
    name: str
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass
class TemplateConfig:
    """The parsed template file.

    Attributes:
        output: Path of the emitted document, relative to the template directory.
        plugins: Extra modules imported during the load phase.
        defaults: Attributes merged under every architecture's own attributes.
        architectures: Architectures to synthesize, in order.
        root: Directory the template was loaded from.
    """

    output: str = DEFAULT_OUTPUT
    plugins: list[str] = field(default_factory=list)
    defaults: dict[str, Any] = field(default_factory=dict)
    architectures: list[ArchitectureEntry] = field(default_factory=list)
    root: Path = field(default_factory=Path)

    @property
    def output_path(self) -> Path:
        """Absolute or root-relative path of the emitted document."""
        return self.root / self.output


def find_template(path: Path) -> Path:
    """Return the template file for *path*: the file itself, or ``infrasynth.yaml`` inside a directory."""
    if path.is_dir():
        return path / TEMPLATE_FILE_NAME
    return path


def load_template_config(path: Path) -> TemplateConfig:
    """Load and parse an InfraSynth template file.

    Args:
        path: Path to the template file.

    Returns:
        A TemplateConfig instance populated from the file.

    Raises:
        TemplateConfigError: If the file cannot be read or the template is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise TemplateConfigError(f"Template file not found: {path}") from None
    except OSError as exc:
        raise TemplateConfigError(f"Cannot read template file: {exc}") from exc

    config = _parse_template_config(text, source_label=str(path))
    config.root = path.parent
    return config


# ################
# Implementation
# ################


def _parse_template_config(text: str, source_label: str = "<string>") -> TemplateConfig:
    """Parse template YAML text into a TemplateConfig.

    Raises:
        TemplateConfigError: If the YAML is invalid or a field has the wrong shape.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise TemplateConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if not isinstance(data, dict):
        raise TemplateConfigError(f"{source_label}: template must be a YAML mapping")

    unknown = sorted(set(data) - {"output", "plugins", "defaults", "architectures"})
    if unknown:
        raise TemplateConfigError(f"{source_label}: unknown field(s): {', '.join(unknown)}")

    output = _optional_string(data, "output", source_label) or DEFAULT_OUTPUT
    plugins = _string_list(data.get("plugins", []), "plugins", source_label)
    defaults = _mapping(data.get("defaults", {}), "defaults", source_label)

    raw_architectures = data.get("architectures")
    if not isinstance(raw_architectures, list) or not raw_architectures:
        raise TemplateConfigError(f"{source_label}: 'architectures' must be a non-empty list")
    architectures = [_parse_architecture(entry, index, source_label) for index, entry in enumerate(raw_architectures)]

    seen: set[str] = set()
    for entry in architectures:
        if entry.name in seen:
            raise TemplateConfigError(f"{source_label}: architecture name '{entry.name}' is used more than once")
        seen.add(entry.name)

    return TemplateConfig(output=output, plugins=plugins, defaults=defaults, architectures=architectures)


def _parse_architecture(entry: object, index: int, source_label: str) -> ArchitectureEntry:
    """Parse a single architecture entry from the YAML list."""
    location = f"{source_label}: architectures[{index}]"

    if not isinstance(entry, dict):
        raise TemplateConfigError(f"{location} must be a YAML mapping")

    type_ = _require_string(entry, "type", location)
    name = _require_string(entry, "name", location)
    attributes = _mapping(entry.get("attributes", {}), "attributes", f"{location} '{name}'")
    return ArchitectureEntry(type=type_, name=name, attributes=attributes)


def _require_string(mapping: dict[str, object], key: str, source_label: str) -> str:
    """Extract a required string field from a mapping, raising TemplateConfigError if missing."""
    if key not in mapping:
        raise TemplateConfigError(f"{source_label}: missing required field '{key}'")
    value = mapping[key]
    if not isinstance(value, str) or not value:
        raise TemplateConfigError(f"{source_label}: '{key}' must be a non-empty string")
    return value


def _optional_string(mapping: dict[str, object], key: str, source_label: str) -> str | None:
    if key not in mapping:
        return None
    return _require_string(mapping, key, source_label)


def _string_list(value: object, key: str, source_label: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise TemplateConfigError(f"{source_label}: '{key}' must be a list of strings")
    return list(value)


def _mapping(value: object, key: str, source_label: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TemplateConfigError(f"{source_label}: '{key}' must be a mapping")
    return dict(value)
