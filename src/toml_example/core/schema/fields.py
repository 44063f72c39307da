from __future__ import annotations
from typing import Any, Callable, Iterable, List, Optional, Union

from toml_example.core.render.values import to_toml_literal
from toml_example.core.schema.model import FieldDescriptor, as_policies
from toml_example.core.schema.shapes import (
    DefaultPolicy,
    ExplicitLiteral,
    ExternalFunction,
    InheritedFromParent,
    NestingPolicy,
    ZeroValue,
    as_nesting,
    as_shape,
)

_MISSING = object()


# ------------------------------------------------------------------------------
# DeclaredField
# ------------------------------------------------------------------------------


class DeclaredField:
    """
    Class-body declaration of a config field.

    Collected in declaration order through __set_name__ and turned into an
    immutable FieldDescriptor by @schema. On instances it behaves like a plain
    attribute so decorated classes can still carry values.
    """

    def __init__(
        self,
        shape: Any,
        *,
        doc: Union[str, Iterable[str], None] = None,
        default: Any = _MISSING,
        literal: Optional[str] = None,
        default_factory: Union[Callable[[], Any], str, None] = None,
        zero_default: bool = False,
        inherit: bool = False,
        defaults: Optional[Iterable[DefaultPolicy]] = None,
        nesting: Union[NestingPolicy, bool, str, None] = None,
        flatten: bool = False,
        skip: bool = False,
        require: bool = False,
        rename: Optional[str] = None,
        enum: bool = False,
    ):
        """
        Create a field declaration.

        Defaults:
        - `default` is a Python value, converted to a TOML literal.
        - `literal` is TOML text written verbatim (e.g. '"info"', '[1, 2]').
        - `default_factory` is a zero-argument callable or an import path.
        - `zero_default` uses the type's zero value.
        - `inherit` falls back to the record-level default of @schema(default=...).
        - `defaults` gives the full ordered candidate list instead; when two
          providers are declared, the first one wins.
        """
        # store name later in __set_name__
        self.name: Optional[str] = None
        self.shape = as_shape(shape)
        self.doc = doc
        self.nesting = as_nesting(nesting)
        self.flatten = flatten
        self.skip = skip
        self.require = require
        self.rename = rename
        self.enum = enum

        if defaults is not None:
            singles = (
                default is not _MISSING,
                literal is not None,
                default_factory is not None,
                zero_default,
                inherit,
            )
            if any(singles):
                raise ValueError("Pass either 'defaults' or the single default options, not both.")
            self.defaults = as_policies(defaults)
            return

        policies: List[DefaultPolicy] = []
        if literal is not None:
            policies.append(ExplicitLiteral(literal))
        elif default is not _MISSING:
            policies.append(ExplicitLiteral(to_toml_literal(default, self.shape)))
        if default_factory is not None:
            policies.append(ExternalFunction(default_factory))
        if zero_default:
            policies.append(ZeroValue())
        if inherit:
            policies.append(InheritedFromParent())
        self.defaults = tuple(policies)

    # preserve declaration order and record the field name
    def __set_name__(self, owner, name):
        self.name = name
        fields = owner.__dict__.get("__schema_fields__")
        if fields is None:
            fields = []
            setattr(owner, "__schema_fields__", fields)
        fields.append(self)

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return getattr(instance, f"__value__{self.name}", None)

    def __set__(self, instance, value):
        setattr(instance, f"__value__{self.name}", value)

    def to_descriptor(self) -> FieldDescriptor:
        if self.name is None:
            raise ValueError("Field is not bound to a class attribute yet.")
        return FieldDescriptor(
            name=self.name,
            shape=self.shape,
            doc=self.doc,
            defaults=self.defaults,
            nesting=self.nesting,
            flatten=self.flatten,
            skip=self.skip,
            require=self.require,
            rename=self.rename,
            is_enum_like=self.enum,
        )

    def __repr__(self) -> str:
        return f"DeclaredField({self.name!r}, {self.shape!r})"


def field(shape: Any, **kwargs) -> DeclaredField:
    """
    Public factory for DeclaredField.
    Examples:
        # scalar with a literal default
        port = field(int, doc="Port to listen on", default=8080)

        # optional value, rendered as a commented line when unset
        token = field(Optional[str], doc="API token")

        # nested record under its own [section]
        database = field(Database, nesting=True)

        # map of records with a representative key: [services.http]
        services = field(Dict[str, Service], nesting="http")
    """
    return DeclaredField(shape, **kwargs)
