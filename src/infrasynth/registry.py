# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Process-wide catalogs mapping kind and capability names to builders.

Registries are filled during the load phase, while resource, component, and
architecture modules are imported, and are read during synthesis. Writes are
serialized by a single lock and publish a fresh snapshot of the mapping, so
lookups never lock. :meth:`Registry.freeze` ends the load phase; any later
registration is rejected.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
import threading
from collections.abc import Callable, Iterator
from types import MappingProxyType, ModuleType
from typing import Generic, TypeVar

from infrasynth.errors import AmbiguousRegistrationError, PluginImportError, RegistryFrozenError, UnknownKindError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ###############
# Public Interface
# ###############

BUILTIN_PLUGINS = (
    "infrasynth.resources",
    "infrasynth.components",
    "infrasynth.architectures",
)


class Registry(Generic[T]):
    """A named catalog of builders keyed by kind or capability name.

    Args:
        label: Human-readable entry label used in error messages
            (e.g. ``"component"``).
    """

    def __init__(self, label: str) -> None:
        self.label = label
        self._lock = threading.Lock()
        self._entries: MappingProxyType[str, T] = MappingProxyType({})
        self._frozen = False

    @property
    def frozen(self) -> bool:
        """Return True once the load phase has ended."""
        return self._frozen

    def register(self, name: str, builder: T) -> T:
        """Register *builder* under *name* and return it.

        Registering the same builder under the same name again is a no-op.

        Raises:
            AmbiguousRegistrationError: If a different builder already owns *name*.
            RegistryFrozenError: If the registry has been frozen.
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(self.label, name)
            existing = self._entries.get(name)
            if existing is builder:
                return builder
            if existing is not None:
                raise AmbiguousRegistrationError(self.label, name)
            entries = dict(self._entries)
            entries[name] = builder
            self._entries = MappingProxyType(entries)
        logger.debug("Registered %s '%s'", self.label, name)
        return builder

    def provider(self, name: str) -> Callable[[T], T]:
        """Decorator form of :meth:`register`."""

        def _decorate(builder: T) -> T:
            return self.register(name, builder)

        return _decorate

    def lookup(self, name: str) -> T | None:
        """Return the builder registered under *name*, or None if there is none."""
        return self._entries.get(name)

    def get(self, name: str) -> T:
        """Return the builder registered under *name*.

        Raises:
            UnknownKindError: If nothing is registered under *name*.
        """
        builder = self._entries.get(name)
        if builder is None:
            raise UnknownKindError(self.label, name)
        return builder

    def freeze(self) -> None:
        """End the load phase. Idempotent."""
        with self._lock:
            self._frozen = True

    def names(self) -> tuple[str, ...]:
        """Registered names in registration order."""
        return tuple(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"Registry({self.label!r}, {len(self)} entries, {state})"


def load_plugins(*module_names: str) -> list[str]:
    """Import modules so that their registrations run.

    A package is imported together with all of its submodules. Modules that
    are already imported are not re-executed.

    Args:
        module_names: Dotted module or package names.

    Returns:
        The names of every module imported, in import order.

    Raises:
        PluginImportError: If a module or one of its submodules fails to import.
    """
    loaded: list[str] = []
    for module_name in module_names:
        module = _import(module_name)
        loaded.append(module_name)
        for info in pkgutil.walk_packages(getattr(module, "__path__", []), prefix=f"{module_name}."):
            if info.name.rsplit(".", 1)[-1].startswith("_"):
                continue
            _import(info.name)
            loaded.append(info.name)
    logger.debug("Loaded %d plugin module(s)", len(loaded))
    return loaded


def load_builtins() -> list[str]:
    """Load the bundled resource kinds, components, and architectures."""
    return load_plugins(*BUILTIN_PLUGINS)


def freeze_all() -> None:
    """Freeze the process-wide registries, ending the load phase."""
    for registry in (resource_kinds, components, architectures):
        registry.freeze()


# Process-wide registries.
resource_kinds: Registry = Registry("resource kind")
components: Registry = Registry("component")
architectures: Registry = Registry("architecture")


# ################
# Implementation
# ################


def _import(module_name: str) -> ModuleType:
    try:
        return importlib.import_module(module_name)
    except (ImportError, SyntaxError) as exc:
        raise PluginImportError(module_name, str(exc)) from exc
