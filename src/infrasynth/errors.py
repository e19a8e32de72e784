# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Error taxonomy shared by every layer of the synthesis engine.

Every error aborts the enclosing synthesis session. Nothing in the core
attempts partial recovery: a half-built infrastructure definition is never
emitted. The only soft degrade is the composer's fallback path, which handles
absence of an optional sub-component without raising at all.
"""

from __future__ import annotations

# ###############
# Public Interface
# ###############


class SynthesisError(Exception):
    """Base class for all errors raised while building a synthesis document."""


class ValidationError(SynthesisError):
    """Raised when raw input fails a type, constraint, or cross-field rule.

    Attributes:
        path: Dotted path of the offending field (e.g. ``auto_scaling.min``).
            Empty when the failure concerns the record as a whole.
        reason: Human-readable explanation of the failure.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        location = f"'{path}'" if path else "<record>"
        super().__init__(f"Invalid value at {location}: {reason}")

    def prefixed(self, prefix: str) -> ValidationError:
        """Return a copy of this error whose path is nested under *prefix*."""
        path = f"{prefix}.{self.path}" if self.path else prefix
        return ValidationError(path, self.reason)


class UnknownKindError(SynthesisError):
    """Raised when a kind or capability has no registry entry and no fallback."""

    def __init__(self, registry: str, name: str) -> None:
        self.registry = registry
        self.name = name
        super().__init__(f"No {registry} registered under '{name}'")


class DuplicateDeclarationError(SynthesisError):
    """Raised when the same (kind, logical name) pair is declared twice in one context."""

    def __init__(self, kind: str, logical_name: str) -> None:
        self.kind = kind
        self.logical_name = logical_name
        super().__init__(f"Resource '{kind}.{logical_name}' is already declared in this synthesis context")


class AmbiguousRegistrationError(SynthesisError):
    """Raised when two different builders are registered under the same name."""

    def __init__(self, registry: str, name: str) -> None:
        self.registry = registry
        self.name = name
        super().__init__(f"Ambiguous {registry} '{name}': a different builder is already registered under this name")


class RegistryFrozenError(SynthesisError):
    """Raised when a registration is attempted after the load phase has ended."""

    def __init__(self, registry: str, name: str) -> None:
        self.registry = registry
        self.name = name
        super().__init__(f"Cannot register {registry} '{name}': the registry is frozen")


class OrderingViolationError(SynthesisError):
    """Raised when a composition step runs out of order.

    Covers referencing a member that has not been composed yet, referencing a
    value no composed member produced, and revisiting an earlier composition
    state. Always a programming error in the architecture definition.
    """


class ForeignReferenceError(SynthesisError):
    """Raised when a reference minted by another synthesis context is embedded in a declaration."""


class OutputContractError(SynthesisError):
    """Raised when a composed member does not expose an output it promised to provide."""


class PluginImportError(SynthesisError):
    """Raised when a plugin module named in the load phase cannot be imported."""

    def __init__(self, module: str, reason: str) -> None:
        self.module = module
        self.reason = reason
        super().__init__(f"Cannot load plugin '{module}': {reason}")
