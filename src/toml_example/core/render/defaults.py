from __future__ import annotations

from collections import abc
from dataclasses import dataclass
from typing import Any, Iterable, Union

from toml_example.core.render.values import quote, quote_once, to_toml_literal
from toml_example.core.schema.model import FieldDescriptor
from toml_example.core.schema.shapes import (
    SCALAR_KINDS,
    DefaultPolicy,
    Enumerated,
    ExplicitLiteral,
    ExternalFunction,
    InheritedFromParent,
    Mapping,
    Optional,
    Scalar,
    Sequence,
    Shape,
    ZeroValue,
)

REPRESENTATIVE_KEY = "example"


@dataclass(frozen=True)
class Present:
    text: str


class _Absent:
    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()
ResolvedDefault = Union[Present, _Absent]


# ------------------------------------------------------------------------------
# Zero and example values
# ------------------------------------------------------------------------------


def _enum_name(shape: Enumerated) -> str | None:
    variant = shape.default_variant
    if variant is None:
        return None
    return quote(shape.display(variant))


def example_value(shape: Shape) -> str | None:
    """
    Placeholder literal shown when nothing better is known:
      0 / 0.0 / "" / false for scalars, `[ <item>, ]` for sequences,
      `{ example = <value> }` for maps, the quoted default variant for enums.
    Nested records have no inline placeholder (None).
    """
    if isinstance(shape, Scalar):
        return SCALAR_KINDS[shape.kind]
    if isinstance(shape, Optional):
        return example_value(shape.inner)
    if isinstance(shape, Sequence):
        item = example_value(shape.item)
        return f"[ {item}, ]" if item is not None else "[  ]"
    if isinstance(shape, Mapping):
        value = example_value(shape.value)
        return f"{{ {REPRESENTATIVE_KEY} = {value} }}" if value is not None else "{  }"
    if isinstance(shape, Enumerated):
        return _enum_name(shape) or '""'
    return None


def zero_value(shape: Shape) -> ResolvedDefault:
    """The value a type takes when defaulted; an unset optional is absent."""
    if isinstance(shape, Scalar):
        return Present(SCALAR_KINDS[shape.kind])
    if isinstance(shape, Sequence):
        return Present("[]")
    if isinstance(shape, Mapping):
        return Present("{}")
    if isinstance(shape, Enumerated):
        name = _enum_name(shape)
        return Present(name) if name is not None else ABSENT
    # Optional and Nested
    return ABSENT


# ------------------------------------------------------------------------------
# Resolution
# ------------------------------------------------------------------------------


def _from_value(value: Any, shape: Shape) -> ResolvedDefault:
    if value is None:
        return ABSENT
    return Present(to_toml_literal(value, shape))


def _inherited(field: FieldDescriptor, outer: DefaultPolicy | None) -> ResolvedDefault:
    if isinstance(outer, ZeroValue):
        return zero_value(field.shape)
    if isinstance(outer, ExternalFunction):
        parent = outer()
        if isinstance(parent, abc.Mapping):
            value = parent.get(field.name)
        else:
            value = getattr(parent, field.name, None)
        return _from_value(value, field.shape)
    return ABSENT


def _scan(
    field: FieldDescriptor,
    candidates: Iterable[DefaultPolicy],
    outer: DefaultPolicy | None,
) -> ResolvedDefault:
    candidates = tuple(candidates)
    for policy in candidates:
        if isinstance(policy, ExplicitLiteral):
            return Present(policy.text)

    # Field-level providers: the first one declared that yields a value wins.
    for policy in candidates:
        if isinstance(policy, ExternalFunction):
            resolved = _from_value(policy(), field.shape)
        elif isinstance(policy, ZeroValue):
            resolved = zero_value(field.shape)
        else:
            continue
        if resolved:
            return resolved

    inherits = not candidates or any(
        isinstance(policy, InheritedFromParent) for policy in candidates
    )
    if inherits and outer is not None:
        return _inherited(field, outer)
    return ABSENT


def resolve(
    field: FieldDescriptor, parent_outer_policy: DefaultPolicy | None = None
) -> ResolvedDefault:
    """
    Compute the example value of a leaf field.

    Precedence: explicit literal, then the first default function or zero
    value in declaration order, then the record's outer default (explicitly
    inherited, or implied when the field has no policy of its own).
    A required Optional never stays absent: it takes the zero value of its
    inner shape, or its example value when that has none.
    """
    resolved = _scan(field, field.defaults, parent_outer_policy)

    if not resolved and field.require and isinstance(field.shape, Optional):
        resolved = zero_value(field.shape.inner)
        if not resolved:
            text = example_value(field.shape.inner)
            if text is not None:
                resolved = Present(text)

    if resolved and field.enum_like:
        resolved = Present(quote_once(resolved.text))
    return resolved
