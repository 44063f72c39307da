from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Tuple

from toml_example.core.render.keys import check_rename_rule
from toml_example.core.schema.errors import SchemaError
from toml_example.core.schema.shapes import (
    DEFAULT_POLICIES,
    INLINE,
    DefaultPolicy,
    Enumerated,
    ExplicitLiteral,
    ExternalFunction,
    Inline,
    NestingPolicy,
    Optional,
    Prefix,
    Section,
    Shape,
    ZeroValue,
    as_nesting,
    nested_target,
    unwrap_optional,
)


def doc_lines(doc: Any) -> Tuple[str, ...]:
    """Normalize a docstring or an iterable of lines into a tuple of lines."""
    if doc is None:
        return ()
    if isinstance(doc, str):
        return tuple(doc.splitlines())
    lines = tuple(doc)
    if not all(isinstance(line, str) for line in lines):
        raise TypeError("doc must be a string or a sequence of strings.")
    # an embedded newline starts a new comment line; an empty element stays a blank line
    return tuple(part for line in lines for part in (line.splitlines() or [""]))


def as_policies(defaults: Any) -> Tuple[DefaultPolicy, ...]:
    if defaults is None:
        return ()
    if isinstance(defaults, DEFAULT_POLICIES):
        return (defaults,)
    policies = tuple(defaults)
    for policy in policies:
        if not isinstance(policy, DEFAULT_POLICIES):
            raise TypeError(f"Not a default policy: {policy!r}")
    return policies


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Immutable description of one record field.

    `defaults` is the ordered list of default-policy candidates, in the order
    they were declared; an empty tuple means no default policy.
    """

    name: str
    shape: Shape
    doc: Tuple[str, ...] = ()
    defaults: Tuple[DefaultPolicy, ...] = ()
    nesting: NestingPolicy = INLINE
    flatten: bool = False
    skip: bool = False
    require: bool = False
    rename: str | None = None
    is_enum_like: bool = False

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise SchemaError("Field name must be a non-empty string.")
        if not isinstance(self.shape, Shape):
            raise SchemaError(f"Field {self.name!r}: shape must be a Shape, got {self.shape!r}.")
        object.__setattr__(self, "doc", doc_lines(self.doc))
        object.__setattr__(self, "defaults", as_policies(self.defaults))
        object.__setattr__(self, "nesting", as_nesting(self.nesting))

        # Skipped fields never reach rendering, so no other rule applies to them.
        if self.skip:
            return

        target = nested_target(self.shape)
        if not isinstance(self.nesting, Inline):
            if target is None:
                raise SchemaError(
                    f"Field {self.name!r}: nesting only applies to nested records, "
                    f"not to {self.shape!r}."
                )
            if isinstance(self.nesting, Prefix) and target[0] != "table":
                raise SchemaError(
                    f"Field {self.name!r}: prefix nesting only applies to a nested "
                    "record, not to a collection of records."
                )
        if self.flatten:
            if target is None or target[0] == "array":
                raise SchemaError(
                    f"Only records and maps can be flattened! "
                    f"(But field {self.name!r} is {self.shape!r})"
                )
            if isinstance(self.nesting, Prefix):
                raise SchemaError(
                    f"Field {self.name!r}: flatten cannot be combined with prefix nesting."
                )

    @property
    def optional(self) -> bool:
        """True when the field renders as a commented placeholder if unset."""
        return isinstance(self.shape, Optional) and not self.require

    @property
    def enum_like(self) -> bool:
        inner, _ = unwrap_optional(self.shape)
        return self.is_enum_like or isinstance(inner, Enumerated)

    @property
    def sample_key(self) -> str | None:
        if isinstance(self.nesting, Section):
            return self.nesting.sample_key
        return None


@dataclass(frozen=True)
class RecordDescriptor:
    """Immutable description of a record: its docs, ordered fields and policies."""

    name: str
    fields: Tuple[FieldDescriptor, ...] = ()
    doc: Tuple[str, ...] = ()
    rename_all: str | None = None
    outer_default_policy: DefaultPolicy | None = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise SchemaError("Record name must be a non-empty string.")
        object.__setattr__(self, "doc", doc_lines(self.doc))
        object.__setattr__(self, "fields", tuple(self.fields))

        seen = set()
        for f in self.fields:
            if not isinstance(f, FieldDescriptor):
                raise SchemaError(f"Record {self.name!r}: not a FieldDescriptor: {f!r}")
            if f.name in seen:
                raise SchemaError(f"Record {self.name!r}: duplicate field {f.name!r}.")
            seen.add(f.name)

        try:
            object.__setattr__(self, "rename_all", check_rename_rule(self.rename_all))
        except SchemaError as exc:
            raise SchemaError(f"Record {self.name!r}: {exc}") from exc

        policy = self.outer_default_policy
        if isinstance(policy, ExplicitLiteral):
            raise SchemaError(
                f"Record {self.name!r}: setting a default value on a record is not supported!"
            )
        if policy is not None and not isinstance(policy, (ZeroValue, ExternalFunction)):
            raise SchemaError(
                f"Record {self.name!r}: outer default must be ZeroValue or ExternalFunction, "
                f"got {policy!r}."
            )

    def visible_fields(self) -> Iterable[FieldDescriptor]:
        return (f for f in self.fields if not f.skip)

    def field(self, name: str) -> FieldDescriptor:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)
