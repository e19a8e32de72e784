# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Schema layer: typed attribute containers with field and cross-field validation."""

from infrasynth.schema.fields import (
    BOOLEAN,
    INTEGER,
    LIST,
    MAPPING,
    NUMBER,
    REQUIRED,
    STRING,
    FieldSpec,
    attribute,
)
from infrasynth.schema.schema import Attributes, CrossFieldValidator, Schema, define
from infrasynth.schema.validators import at_most_one_of, exactly_one_of, ordered, requires

__all__ = [
    # Fields
    "BOOLEAN",
    "INTEGER",
    "LIST",
    "MAPPING",
    "NUMBER",
    "REQUIRED",
    "STRING",
    "FieldSpec",
    "attribute",
    # Schemas
    "Attributes",
    "CrossFieldValidator",
    "Schema",
    "define",
    # Cross-field validators
    "at_most_one_of",
    "exactly_one_of",
    "ordered",
    "requires",
]
