# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Declarative field descriptions and their translation into pydantic annotations."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Annotated, Any, Optional

from pydantic import AfterValidator, PlainSerializer, Strict
from pydantic import Field as _Field

if TYPE_CHECKING:
    from infrasynth.schema.schema import Schema

# ###############
# Public Interface
# ###############

# Primitive and container type tags understood by :func:`attribute`.
STRING = "string"
INTEGER = "integer"
NUMBER = "number"
BOOLEAN = "boolean"
MAPPING = "mapping"
LIST = "list"

TYPE_TAGS = (STRING, INTEGER, NUMBER, BOOLEAN, MAPPING, LIST)

# A predicate paired with the message reported when it returns False.
Check = tuple[Callable[[Any], bool], str]


class _Required:
    """Sentinel marking a field without a default."""

    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED: Any = _Required()


@dataclass(frozen=True)
class FieldSpec:
    """Description of one attribute of a schema.

    Attributes:
        type: A type tag (see :data:`TYPE_TAGS`) or a nested :class:`Schema`.
        default: Value applied when the field is absent. :data:`REQUIRED`
            makes the field mandatory; ``None`` makes it an unset optional.
        items: Element description for ``list`` fields: a type tag, a nested
            schema, or a full :class:`FieldSpec` carrying element constraints.
        description: Free-form documentation of the field.
        ge, le, gt, lt: Numeric range bounds.
        choices: Allowed values (enum membership).
        pattern: Regular expression a string value must match.
        min_length, max_length: Size bounds for strings, lists, and mappings.
        checks: Extra ``(predicate, message)`` pairs evaluated after the
            built-in constraints.
    """

    type: str | Schema
    default: Any = REQUIRED
    items: str | Schema | FieldSpec | None = None
    description: str | None = None
    ge: float | None = None
    le: float | None = None
    gt: float | None = None
    lt: float | None = None
    choices: tuple[Any, ...] | None = None
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    checks: tuple[Check, ...] = ()

    @property
    def required(self) -> bool:
        """Return True if the field has no default value."""
        return self.default is REQUIRED


def attribute(
    type: str | Schema,
    *,
    default: Any = REQUIRED,
    optional: bool = False,
    items: str | Schema | FieldSpec | None = None,
    description: str | None = None,
    ge: float | None = None,
    le: float | None = None,
    gt: float | None = None,
    lt: float | None = None,
    choices: Sequence[Any] | None = None,
    pattern: str | None = None,
    min_length: int | None = None,
    max_length: int | None = None,
    checks: Sequence[Check] = (),
) -> FieldSpec:
    """Build a :class:`FieldSpec`.

    ``optional=True`` without an explicit default is shorthand for
    ``default=None``: the field may be omitted and is then left out of the
    emitted configuration block.

    Raises:
        ValueError: If the type tag is unknown or a ``list`` field has no
            ``items`` description.
    """
    if isinstance(type, str) and type not in TYPE_TAGS:
        raise ValueError(f"Unknown field type tag '{type}'")
    if type == LIST and items is None:
        raise ValueError("A 'list' field requires an 'items' description")
    if optional and default is REQUIRED:
        default = None
    return FieldSpec(
        type=type,
        default=default,
        items=items,
        description=description,
        ge=ge,
        le=le,
        gt=gt,
        lt=lt,
        choices=tuple(choices) if choices is not None else None,
        pattern=pattern,
        min_length=min_length,
        max_length=max_length,
        checks=tuple(checks),
    )


def to_annotation(spec: FieldSpec) -> tuple[Any, Any]:
    """Translate a field description into a pydantic ``(annotation, default)`` pair."""
    annotation = _value_annotation(spec)
    if spec.required:
        return annotation, _Field(description=spec.description)
    if spec.default is None:
        annotation = Optional[annotation]
    if isinstance(spec.default, list):
        values = tuple(spec.default)
        return annotation, _Field(default_factory=lambda: values, validate_default=True, description=spec.description)
    if isinstance(spec.default, dict):
        mapping = dict(spec.default)
        return annotation, _Field(
            default_factory=lambda: dict(mapping), validate_default=True, description=spec.description
        )
    return annotation, _Field(default=spec.default, description=spec.description)


# ################
# Implementation
# ################

_PRIMITIVES: dict[str, type] = {
    STRING: str,
    INTEGER: int,
    NUMBER: float,
    BOOLEAN: bool,
}


def _value_annotation(spec: FieldSpec) -> Any:
    """Return the annotation for a present (non-None) value of *spec*."""
    metadata: list[Any] = []
    constraints = {
        key: value
        for key, value in (
            ("ge", spec.ge),
            ("le", spec.le),
            ("gt", spec.gt),
            ("lt", spec.lt),
            ("pattern", spec.pattern),
            ("min_length", spec.min_length),
            ("max_length", spec.max_length),
        )
        if value is not None
    }
    if constraints:
        metadata.append(_Field(**constraints))
    if spec.choices is not None:
        metadata.append(AfterValidator(_choices_validator(spec.choices)))
    if spec.checks:
        metadata.append(AfterValidator(_checks_validator(spec.checks)))

    if spec.type == MAPPING:
        # Mappings are exposed read-only and serialize back to plain dicts.
        metadata.append(AfterValidator(MappingProxyType))
        metadata.append(PlainSerializer(dict, return_type=dict[str, str]))

    base = _base_annotation(spec.type, spec.items)
    if not metadata:
        return base
    return Annotated[(base, *metadata)]


def _base_annotation(type_: str | Schema, items: str | Schema | FieldSpec | None) -> Any:
    if not isinstance(type_, str):
        return type_.model
    if type_ in _PRIMITIVES:
        return Annotated[_PRIMITIVES[type_], Strict()]
    if type_ == MAPPING:
        return dict[str, Annotated[str, Strict()]]
    # LIST: lists are stored as tuples so validated attributes stay immutable.
    element = items if isinstance(items, FieldSpec) else FieldSpec(type=items)  # type: ignore[arg-type]
    return tuple[_value_annotation(element), ...]


def _choices_validator(choices: tuple[Any, ...]) -> Callable[[Any], Any]:
    allowed = ", ".join(repr(c) for c in choices)

    def _validate(value: Any) -> Any:
        if value not in choices:
            raise ValueError(f"{value!r} is not one of {allowed}")
        return value

    return _validate


def _checks_validator(checks: tuple[Check, ...]) -> Callable[[Any], Any]:
    def _validate(value: Any) -> Any:
        for predicate, message in checks:
            if not predicate(value):
                raise ValueError(message)
        return value

    return _validate
