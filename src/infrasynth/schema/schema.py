# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Attribute schemas and the immutable values they validate.

A :class:`Schema` wraps a frozen pydantic model. Schemas are either declared
from :class:`~infrasynth.schema.fields.FieldSpec` mappings with :func:`define`,
or written by hand as :class:`Attributes` subclasses and wrapped with
:meth:`Schema.from_model`. Either way instantiation proceeds in the same
order: defaults, type checks, field constraints, cross-field validators.
The first failure aborts construction and is reported as a single
:class:`~infrasynth.errors.ValidationError` carrying the dotted field path.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, model_validator
from pydantic_core import PydanticCustomError

from infrasynth.errors import ValidationError
from infrasynth.schema.fields import FieldSpec, to_annotation

# ###############
# Public Interface
# ###############

# A cross-field rule. Raises ValidationError (or ValueError) when violated.
CrossFieldValidator = Callable[["Attributes"], None]


class Attributes(BaseModel):
    """Base class for validated, immutable attribute values.

    Subclasses may override :meth:`check` to enforce rules spanning several
    fields; it runs only after every field has passed its own constraints.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    def check(self) -> None:
        """Validate cross-field invariants. The default accepts everything."""

    def evolve(self, **changes: Any) -> Attributes:
        """Return a new, re-validated value with *changes* applied.

        Raises:
            ValidationError: If the changed value violates the schema.
        """
        data = self.model_dump()
        data.update(changes)
        return Schema.from_model(type(self)).instantiate(data)

    def to_block(self) -> dict[str, Any]:
        """Return the configuration block: defaults applied, unset optional fields omitted."""
        return self.model_dump(mode="json", exclude_none=True)

    @model_validator(mode="after")
    def _run_cross_field_checks(self) -> Attributes:
        try:
            self.check()
        except ValidationError as exc:
            raise PydanticCustomError(
                "cross_field",
                "{reason}",
                {"reason": exc.reason, "field": exc.path},
            ) from None
        return self


class Schema:
    """A named, typed description of a resource's configuration surface."""

    def __init__(self, model: type[Attributes]) -> None:
        self.model = model

    @classmethod
    def from_model(cls, model: type[Attributes]) -> Schema:
        """Wrap a hand-written :class:`Attributes` subclass."""
        if not (isinstance(model, type) and issubclass(model, Attributes)):
            raise TypeError(f"{model!r} is not an Attributes subclass")
        return cls(model)

    @property
    def name(self) -> str:
        """The schema name (the name of the underlying model class)."""
        return self.model.__name__

    @property
    def fields(self) -> tuple[str, ...]:
        """Field names in declaration order."""
        return tuple(self.model.model_fields)

    def instantiate(self, raw_input: Mapping[str, Any] | Attributes | None) -> Attributes:
        """Validate *raw_input* and return the immutable attribute value.

        Args:
            raw_input: A mapping of field names to raw values. ``None`` is
                treated as an empty mapping. An existing instance of this
                schema's model is returned unchanged.

        Returns:
            An instance of the schema's model.

        Raises:
            ValidationError: On the first type, constraint, or cross-field
                failure. No partially built value is returned.
        """
        if isinstance(raw_input, self.model):
            return raw_input
        if raw_input is None:
            raw_input = {}
        if isinstance(raw_input, Attributes):
            raw_input = raw_input.model_dump()
        if not isinstance(raw_input, Mapping):
            raise ValidationError("", f"attributes must be a mapping, got {type(raw_input).__name__}")
        try:
            return self.model.model_validate(dict(raw_input))
        except pydantic.ValidationError as exc:
            raise _first_error(exc) from exc

    def __repr__(self) -> str:
        return f"Schema({self.name})"


def define(
    name: str,
    fields: Mapping[str, FieldSpec],
    *,
    validators: Iterable[CrossFieldValidator] = (),
    doc: str | None = None,
) -> Schema:
    """Declare a schema from field descriptions.

    Args:
        name: Schema name, used as the model class name.
        fields: Mapping from field name to :class:`FieldSpec`, in the order
            fields should appear in emitted blocks.
        validators: Cross-field rules run after all field-level checks pass.
        doc: Optional docstring for the generated model.

    Returns:
        A :class:`Schema` wrapping the generated frozen model.
    """
    annotations: dict[str, Any] = {}
    namespace: dict[str, Any] = {"__module__": __name__, "__qualname__": name, "__doc__": doc}
    for field_name, spec in fields.items():
        annotation, default = to_annotation(spec)
        annotations[field_name] = annotation
        namespace[field_name] = default
    namespace["__annotations__"] = annotations

    rules = tuple(validators)
    if rules:
        namespace["check"] = _combine(rules)

    model = type(name, (Attributes,), namespace)
    return Schema(model)


# ################
# Implementation
# ################


def _combine(rules: tuple[CrossFieldValidator, ...]) -> Callable[[Attributes], None]:
    def check(self: Attributes) -> None:
        for rule in rules:
            rule(self)

    return check


def _format_loc(loc: tuple[int | str, ...]) -> str:
    """Join a pydantic error location into a dotted path (``ingress[1].from_port``)."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


def _first_error(exc: pydantic.ValidationError) -> ValidationError:
    """Convert the first pydantic error into a ValidationError."""
    error = exc.errors()[0]
    # Drop the internal function-after/validator markers pydantic adds to locations.
    loc = tuple(part for part in error["loc"] if not (isinstance(part, str) and part.startswith("function-")))
    path = _format_loc(loc)
    ctx = error.get("ctx") or {}
    if error["type"] == "cross_field":
        field = ctx.get("field", "")
        if field:
            path = f"{path}.{field}" if path else field
        return ValidationError(path, str(ctx.get("reason", error["msg"])))
    if error["type"] == "value_error" and "error" in ctx:
        return ValidationError(path, str(ctx["error"]))
    return ValidationError(path, error["msg"])
