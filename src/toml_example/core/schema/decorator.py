from __future__ import annotations
import inspect
from typing import Any, Dict, Optional, Type

from toml_example.core.schema.fields import DeclaredField
from toml_example.core.schema.model import RecordDescriptor
from toml_example.core.schema.registry import get_current_registry, RecordRegistry
from toml_example.core.schema.shapes import (
    DEFAULT_POLICIES,
    DefaultPolicy,
    ExternalFunction,
    ZeroValue,
)

__all__ = ["schema", "get_records_registry", "describe"]


def get_records_registry() -> Dict[str, RecordDescriptor]:
    """
    Return the current registry's record-name -> RecordDescriptor dict.

    The returned dict is the *live* mapping managed by the current registry.
    """
    return get_current_registry().get_records()


def _outer_policy(default: Any) -> Optional[DefaultPolicy]:
    if default is None or default is False:
        return None
    if default is True:
        return ZeroValue()
    if isinstance(default, DEFAULT_POLICIES):
        return default
    return ExternalFunction(default)


def describe(cls: Type, name: Optional[str] = None, *, rename_all=None, default=None) -> RecordDescriptor:
    """
    Build a RecordDescriptor from the DeclaredField attributes of `cls`
    without registering it. The class docstring becomes the record doc.
    """
    declared = cls.__dict__.get("__schema_fields__", [])
    doc = inspect.cleandoc(cls.__doc__) if cls.__dict__.get("__doc__") else None
    return RecordDescriptor(
        name=name or cls.__name__,
        fields=tuple(f.to_descriptor() for f in declared if isinstance(f, DeclaredField)),
        doc=doc,
        rename_all=rename_all,
        outer_default_policy=_outer_policy(default),
    )


def schema(
    _cls: Optional[Type] = None,
    *args,
    name: Optional[str] = None,
    rename_all: Optional[str] = None,
    default: Any = None,
    registry: Optional[RecordRegistry] = None,
):
    """
    Class decorator that:
      1) Builds a RecordDescriptor from DeclaredField declarations.
      2) Registers (class -> record name) for Nested(Class) resolution.
      3) Registers (record name -> RecordDescriptor) into the registry.

    Supported usages
    ----------------
    @schema
    class A: ...

    @schema("Custom")
    class B: ...

    @schema(rename_all="kebab-case", default=True)
    class C: ...

    Parameters
    ----------
    name : Optional[str]
        Record name override (e.g., @schema(name="Name")).

    rename_all : Optional[str]
        Casing rule applied to every field without its own `rename`.

    default :
        Record-level default inherited by fields without a policy of their
        own: True for zero values, or a callable returning an object / mapping
        with one attribute / key per field.

    registry : Optional[RecordRegistry]
        Explicit registry to register into; defaults to get_current_registry().

    The class receives:
        - __schema_name__: the resolved record name
        - __record_descriptor__: the built RecordDescriptor
    """
    positional_name: Optional[str] = None
    if _cls is not None and isinstance(_cls, str):
        positional_name = _cls
        _cls = None

    if positional_name is not None and name is not None:
        raise ValueError(
            "schema(): do not pass both a positional name and name= simultaneously."
        )
    effective_name = name or positional_name

    reg = registry or get_current_registry()

    def _decorate(cls: Type) -> Type:
        record_name = effective_name or cls.__name__
        record = describe(cls, record_name, rename_all=rename_all, default=default)

        reg.register_class_name(cls, record_name)
        reg.put_record(record)

        cls.__schema_name__ = record_name
        cls.__record_descriptor__ = record
        return cls

    if _cls is not None:
        return _decorate(_cls)

    return _decorate
