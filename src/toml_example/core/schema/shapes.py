from __future__ import annotations

import enum
import importlib
import types
import typing
from collections import abc
from dataclasses import dataclass, field
from typing import Any, Callable, Tuple, Union

from toml_example.core.schema.errors import SchemaError

# Scalar kinds and their TOML example literal
SCALAR_KINDS = {
    "integer": "0",
    "float": "0.0",
    "string": '""',
    "boolean": "false",
}

_PY_SCALARS = {
    bool: "boolean",
    int: "integer",
    float: "float",
    str: "string",
}

_UNION_ORIGINS = (Union, getattr(types, "UnionType", Union))


# ------------------------------------------------------------------------------
# Shapes
# ------------------------------------------------------------------------------


class Shape:
    """Base class for the type shape of a field."""


@dataclass(frozen=True)
class Scalar(Shape):
    kind: str = "string"

    def __post_init__(self):
        if self.kind not in SCALAR_KINDS:
            raise SchemaError(
                f"Invalid scalar kind {self.kind!r}. Allowed: {sorted(SCALAR_KINDS)}"
            )


@dataclass(frozen=True)
class Optional(Shape):
    inner: Shape


@dataclass(frozen=True)
class Sequence(Shape):
    item: Shape


@dataclass(frozen=True)
class Mapping(Shape):
    value: Shape


@dataclass(frozen=True)
class Nested(Shape):
    """
    A nested record. `record` is a RecordDescriptor, a registered record name,
    or a class decorated with @schema; names and classes are resolved when the
    record tree is linked.
    """

    record: Any


def variant_name(variant: Any) -> str:
    """Display a variant by its enum member name, falling back to str()."""
    return getattr(variant, "name", None) or str(variant)


@dataclass(frozen=True)
class Enumerated(Shape):
    """
    A closed set of variants. `display` maps a variant to the name written in
    the example; `default` is the designated default variant (first one when
    not given).
    """

    variants: Tuple[Any, ...]
    display: Callable[[Any], str]
    default: Any = None

    def __post_init__(self):
        object.__setattr__(self, "variants", tuple(self.variants))
        if not callable(self.display):
            raise SchemaError("Enumerated shape requires a callable display.")
        if self.default is not None and self.default not in self.variants:
            raise SchemaError(
                f"Default variant {self.default!r} is not one of {list(self.variants)!r}."
            )

    @property
    def default_variant(self) -> Any:
        if self.default is not None:
            return self.default
        return self.variants[0] if self.variants else None

    @classmethod
    def from_enum(cls, enum_cls: type, default: Any = None) -> "Enumerated":
        return cls(variants=tuple(enum_cls), display=variant_name, default=default)


# ------------------------------------------------------------------------------
# Default policies
# ------------------------------------------------------------------------------


@dataclass(frozen=True)
class ZeroValue:
    """Use the type-appropriate zero value."""


@dataclass(frozen=True)
class ExplicitLiteral:
    """A literal TOML value, written verbatim."""

    text: str

    def __post_init__(self):
        if not isinstance(self.text, str) or not self.text.strip():
            raise SchemaError("Explicit default literal must be a non-empty string.")
        object.__setattr__(self, "text", self.text.strip())


@dataclass(frozen=True)
class ExternalFunction:
    """
    A zero-argument default provider: a callable, or an import path such as
    "package.module:function" / "package.module.function".
    """

    ref: Union[str, Callable[[], Any]]
    func: Callable[[], Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "func", _load_callable(self.ref))

    def __call__(self) -> Any:
        return self.func()


@dataclass(frozen=True)
class InheritedFromParent:
    """Fall back to the enclosing record's outer default policy."""


DefaultPolicy = Union[ZeroValue, ExplicitLiteral, ExternalFunction, InheritedFromParent]
DEFAULT_POLICIES = (ZeroValue, ExplicitLiteral, ExternalFunction, InheritedFromParent)


def _load_callable(ref: Union[str, Callable[[], Any]]) -> Callable[[], Any]:
    if callable(ref):
        return ref
    if not isinstance(ref, str) or not ref:
        raise SchemaError(f"Default function must be a callable or import path, got {ref!r}.")
    if ":" in ref:
        module_name, _, attr = ref.partition(":")
    else:
        module_name, _, attr = ref.rpartition(".")
    if not module_name or not attr:
        raise SchemaError(f"Cannot resolve default function {ref!r}; use 'module:function'.")
    try:
        obj = importlib.import_module(module_name)
        for part in attr.split("."):
            obj = getattr(obj, part)
    except (ImportError, AttributeError) as exc:
        raise SchemaError(f"Cannot resolve default function {ref!r}: {exc}") from exc
    if not callable(obj):
        raise SchemaError(f"Default function {ref!r} is not callable.")
    return obj


# ------------------------------------------------------------------------------
# Nesting policies
# ------------------------------------------------------------------------------


@dataclass(frozen=True)
class Inline:
    """No explicit nesting marker."""


@dataclass(frozen=True)
class Section:
    """Render under a table header; `sample_key` names the header segment."""

    sample_key: str | None = None


@dataclass(frozen=True)
class Prefix:
    """Render the nested record as dotted keys, without a header."""


NestingPolicy = Union[Inline, Section, Prefix]
INLINE = Inline()


def as_nesting(value: Any) -> NestingPolicy:
    """
    Normalize a nesting marker value:
      None / False      -> Inline
      True / "section"  -> Section()
      "prefix"          -> Prefix()
      any other string  -> Section(sample_key=value)
    """
    if isinstance(value, (Inline, Section, Prefix)):
        return value
    if value is None or value is False:
        return INLINE
    if value is True:
        return Section()
    if isinstance(value, str):
        text = value.strip().strip('"')
        if not text:
            raise SchemaError("Nesting key must not be empty.")
        if text == "section":
            return Section()
        if text == "prefix":
            return Prefix()
        return Section(sample_key=text)
    raise SchemaError(f"Invalid nesting value {value!r}.")


# ------------------------------------------------------------------------------
# Shape helpers
# ------------------------------------------------------------------------------


def unwrap_optional(shape: Shape) -> Tuple[Shape, bool]:
    if isinstance(shape, Optional):
        return shape.inner, True
    return shape, False


def nested_target(shape: Shape) -> Tuple[str, Any, bool] | None:
    """
    Return (kind, record, optional) when the shape resolves to a nested record:
      kind is "table" for Nested, "array" for Sequence<Nested>, "map" for
      Mapping<Nested>. Return None for leaf shapes.
    """
    inner, optional = unwrap_optional(shape)
    if isinstance(inner, Nested):
        return "table", inner.record, optional
    if isinstance(inner, Sequence):
        item, _ = unwrap_optional(inner.item)
        if isinstance(item, Nested):
            return "array", item.record, optional
    if isinstance(inner, Mapping):
        value, _ = unwrap_optional(inner.value)
        if isinstance(value, Nested):
            return "map", value.record, optional
    return None


def as_shape(value: Any) -> Shape:
    """
    Coerce a shape shorthand into a Shape.

    Accepts Shape instances, the builtins int/float/str/bool, Enum classes,
    classes decorated with @schema, RecordDescriptor instances, record names
    (forward references), and typing generics such as Optional[int],
    List[str] or Dict[str, "Service"].
    """
    if isinstance(value, Shape):
        return value
    from toml_example.core.schema.model import RecordDescriptor

    if isinstance(value, type) and value in _PY_SCALARS:
        return Scalar(_PY_SCALARS[value])
    if isinstance(value, type) and issubclass(value, enum.Enum):
        return Enumerated.from_enum(value)
    if isinstance(value, type) and hasattr(value, "__record_descriptor__"):
        return Nested(value)
    if isinstance(value, RecordDescriptor):
        return Nested(value)
    # Forward references by record name
    if isinstance(value, str):
        return Nested(value)
    if isinstance(value, typing.ForwardRef):
        return Nested(value.__forward_arg__)

    origin = typing.get_origin(value)
    args = typing.get_args(value)
    if origin in _UNION_ORIGINS:
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1 and len(rest) < len(args):
            return Optional(as_shape(rest[0]))
        raise SchemaError(f"Only Optional[...] unions are supported, got {value!r}.")
    if origin in (list, tuple, set, frozenset, abc.Sequence):
        if not args:
            raise SchemaError(f"Sequence type {value!r} needs an item type.")
        return Sequence(as_shape(args[0]))
    if origin in (dict, abc.Mapping):
        if len(args) != 2:
            raise SchemaError(f"Mapping type {value!r} needs key and value types.")
        return Mapping(as_shape(args[1]))
    raise SchemaError(f"Cannot derive a field shape from {value!r}.")
