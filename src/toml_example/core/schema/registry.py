# src/toml_example/core/schema/registry.py
from __future__ import annotations
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple, Type
from contextlib import contextmanager
import contextvars

from toml_example.core.schema.errors import SchemaError
from toml_example.core.schema.model import RecordDescriptor
from toml_example.core.schema import shapes


class RecordRegistry:
    """
    Holds:
      - records: record-name -> RecordDescriptor
      - class_to_name: python class -> record-name (for Nested(Class) resolution)
    """

    def __init__(self) -> None:
        self.records: Dict[str, RecordDescriptor] = {}
        self.class_to_name: Dict[Type, str] = {}

    # ---- class-name mapping ----
    def register_class_name(self, cls: Type, name: Optional[str] = None) -> str:
        rec = name or cls.__name__
        self.class_to_name[cls] = rec
        return rec

    def resolve_name(self, obj: Type | str) -> str:
        if isinstance(obj, str):
            return obj
        if isinstance(obj, type):
            if obj in self.class_to_name:
                return self.class_to_name[obj]
            return getattr(obj, "__schema_name__", obj.__name__)
        raise TypeError("Expected a class or string for record resolution.")

    # ---- records ----
    def put_record(self, record: RecordDescriptor) -> None:
        self.records[record.name] = record

    def get_records(self) -> Dict[str, RecordDescriptor]:
        return self.records

    def clear(self) -> None:
        self.records.clear()
        self.class_to_name.clear()

    def resolve(self, target: Any) -> RecordDescriptor:
        """Turn a RecordDescriptor, record name or decorated class into a RecordDescriptor."""
        if isinstance(target, RecordDescriptor):
            return target
        if isinstance(target, type) and target not in self.class_to_name:
            # Decorated in another registry: the class carries its own descriptor.
            attached = getattr(target, "__record_descriptor__", None)
            if isinstance(attached, RecordDescriptor):
                return attached
        name = self.resolve_name(target)
        try:
            return self.records[name]
        except KeyError:
            raise SchemaError(f"Unknown record {name!r}.") from None

    # ---- linking ----
    def link(self, target: Any) -> RecordDescriptor:
        """
        Return a copy of the record tree where every Nested shape holds a
        RecordDescriptor. Cyclic nesting is a SchemaError naming the cycle.
        """
        return self._link(self.resolve(target), ())

    def _link(self, record: RecordDescriptor, stack: Tuple[str, ...]) -> RecordDescriptor:
        if record.name in stack:
            cycle = " -> ".join(stack[stack.index(record.name):] + (record.name,))
            raise SchemaError(f"Cyclic nesting between records: {cycle}")
        stack = stack + (record.name,)
        fields = []
        for f in record.fields:
            if f.skip:
                fields.append(f)
                continue
            where = f"Record {record.name!r}, field {f.name!r}"
            fields.append(replace(f, shape=self._link_shape(f.shape, stack, where)))
        return replace(record, fields=tuple(fields))

    def _link_shape(
        self, shape: shapes.Shape, stack: Tuple[str, ...], where: str
    ) -> shapes.Shape:
        if isinstance(shape, shapes.Nested):
            try:
                nested = self.resolve(shape.record)
            except SchemaError as exc:
                raise SchemaError(f"{where}: {exc}") from exc
            return shapes.Nested(self._link(nested, stack))
        if isinstance(shape, shapes.Optional):
            return shapes.Optional(self._link_shape(shape.inner, stack, where))
        if isinstance(shape, shapes.Sequence):
            return shapes.Sequence(self._link_shape(shape.item, stack, where))
        if isinstance(shape, shapes.Mapping):
            return shapes.Mapping(self._link_shape(shape.value, stack, where))
        return shape

    def roots(self) -> List[str]:
        """Names of records that no other registered record nests."""
        nested = set()
        for record in self.records.values():
            for f in record.visible_fields():
                target = shapes.nested_target(f.shape)
                if target is None:
                    continue
                ref = target[1]
                if isinstance(ref, RecordDescriptor):
                    nested.add(ref.name)
                elif isinstance(ref, (str, type)):
                    nested.add(self.resolve_name(ref))
        return [name for name in self.records if name not in nested]


# A context-variable-backed "current" registry
_current_registry: contextvars.ContextVar[RecordRegistry] = contextvars.ContextVar(
    "current_record_registry", default=RecordRegistry()
)


def get_current_registry() -> RecordRegistry:
    return _current_registry.get()


@contextmanager
def use_registry(reg: RecordRegistry):
    """
    Temporarily switch the current registry within the context.
    """
    token = _current_registry.set(reg)
    try:
        yield reg
    finally:
        _current_registry.reset(token)
