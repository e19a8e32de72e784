# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Reusable cross-field validator factories."""

from __future__ import annotations

from typing import Any

from infrasynth.errors import ValidationError
from infrasynth.schema.schema import Attributes, CrossFieldValidator

# ###############
# Public Interface
# ###############


def exactly_one_of(*fields: str) -> CrossFieldValidator:
    """Require exactly one of *fields* to be set."""
    names = ", ".join(fields)

    def _check(attrs: Attributes) -> None:
        present = [f for f in fields if _is_set(getattr(attrs, f))]
        if len(present) != 1:
            raise ValidationError("", f"exactly one of {names} must be set (got {len(present)})")

    return _check


def at_most_one_of(*fields: str) -> CrossFieldValidator:
    """Allow at most one of *fields* to be set."""
    names = ", ".join(fields)

    def _check(attrs: Attributes) -> None:
        present = [f for f in fields if _is_set(getattr(attrs, f))]
        if len(present) > 1:
            raise ValidationError(present[1], f"only one of {names} may be set")

    return _check


def requires(field: str, *dependencies: str) -> CrossFieldValidator:
    """Require every field in *dependencies* to be set whenever *field* is set."""

    def _check(attrs: Attributes) -> None:
        if not _is_set(getattr(attrs, field)):
            return
        for dependency in dependencies:
            if not _is_set(getattr(attrs, dependency)):
                raise ValidationError(dependency, f"required when '{field}' is set")

    return _check


def ordered(low: str, high: str, *, strict: bool = False) -> CrossFieldValidator:
    """Require ``low <= high`` (``low < high`` when *strict*) whenever both are set."""

    def _check(attrs: Attributes) -> None:
        low_value = getattr(attrs, low)
        high_value = getattr(attrs, high)
        if low_value is None or high_value is None:
            return
        if low_value > high_value or (strict and low_value == high_value):
            relation = "less than" if strict else "less than or equal to"
            raise ValidationError(low, f"{low} ({low_value}) must be {relation} {high} ({high_value})")

    return _check


# ################
# Implementation
# ################


def _is_set(value: Any) -> bool:
    """Return True for values other than None, False, and empty containers."""
    if value is None or value is False:
        return False
    if isinstance(value, (tuple, list, dict, str)):
        return len(value) > 0
    return True
