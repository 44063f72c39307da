from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from toml_example.core.schema import shapes
from toml_example.core.schema.errors import SchemaError
from toml_example.core.schema.markers import parse_field_markers, parse_record_markers
from toml_example.core.schema.model import FieldDescriptor, RecordDescriptor
from toml_example.core.schema.registry import RecordRegistry

logger = logging.getLogger(__name__)

_SCALAR_ALIASES = {
    "integer": "integer",
    "int": "integer",
    "float": "float",
    "string": "string",
    "str": "string",
    "boolean": "boolean",
    "bool": "boolean",
}
_WRAPPERS = {
    "optional": shapes.Optional,
    "list": shapes.Sequence,
    "map": shapes.Mapping,
}


@dataclass
class SchemaDocument:
    """Records loaded from one YAML schema file."""

    registry: RecordRegistry
    root: Optional[str] = None

    def root_name(self, requested: Optional[str] = None) -> str:
        """
        Pick the record to render: the requested one, the declared `root`, or
        the only record that no other record nests.
        """
        name = requested or self.root
        if name is None:
            roots = self.registry.roots()
            if len(roots) != 1:
                raise SchemaError(
                    f"Cannot pick a root record among {sorted(roots)}; declare 'root'."
                )
            name = roots[0]
        if name not in self.registry.get_records():
            raise SchemaError(f"Unknown record {name!r}.")
        return name


def parse_type(text: str, enums: Mapping[str, shapes.Enumerated]) -> shapes.Shape:
    """
    Parse a compact type expression:
      integer | float | string | boolean | optional[T] | list[T] | map[T]
      | <EnumName> | <RecordName>
    Record names stay unresolved (Nested forward references).
    """
    text = text.strip()
    if not text:
        raise SchemaError("Empty type expression.")
    head, bracket, rest = text.partition("[")
    head = head.strip()
    if bracket:
        if not rest.endswith("]"):
            raise SchemaError(f"Unbalanced brackets in type {text!r}.")
        wrapper = _WRAPPERS.get(head.lower())
        if wrapper is None:
            raise SchemaError(f"Unknown type wrapper {head!r} in {text!r}.")
        return wrapper(parse_type(rest[:-1], enums))
    if head.lower() in _SCALAR_ALIASES:
        return shapes.Scalar(_SCALAR_ALIASES[head.lower()])
    if head in enums:
        return enums[head]
    return shapes.Nested(head)


def _as_list(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return value
    raise SchemaError(f"{what} must be a string or a list, got {type(value).__name__}.")


def _load_enums(raw: Mapping[str, Any]) -> Dict[str, shapes.Enumerated]:
    enums: Dict[str, shapes.Enumerated] = {}
    for name, entry in (raw or {}).items():
        if isinstance(entry, list):
            entry = {"variants": entry}
        if not isinstance(entry, dict) or not entry.get("variants"):
            raise SchemaError(f"Enum {name!r} needs a non-empty 'variants' list.")
        variants = [str(v) for v in entry["variants"]]
        try:
            enums[name] = shapes.Enumerated(
                variants=variants, display=str, default=entry.get("default")
            )
        except SchemaError as exc:
            raise SchemaError(f"Enum {name!r}: {exc}") from exc
    return enums


def _load_field(
    record_name: str,
    raw: Mapping[str, Any],
    enums: Mapping[str, shapes.Enumerated],
    functions: Optional[Mapping[str, Callable[[], Any]]],
) -> FieldDescriptor:
    if not isinstance(raw, dict) or "name" not in raw:
        raise SchemaError(f"Record {record_name!r}: every field needs a 'name'.")
    name = str(raw["name"])
    where = f"Record {record_name!r}, field {name!r}"
    if "type" not in raw:
        raise SchemaError(f"{where}: missing 'type'.")
    shape = parse_type(str(raw["type"]), enums)
    markers = parse_field_markers(
        _as_list(raw.get("attrs"), f"{where} attrs"), where=where, functions=functions
    )
    try:
        return FieldDescriptor(
            name=name,
            shape=shape,
            doc=_as_list(raw.get("doc"), f"{where} doc"),
            defaults=markers.defaults,
            nesting=markers.nesting,
            flatten=markers.flatten,
            skip=markers.skip,
            require=markers.require,
            rename=markers.rename,
            is_enum_like=markers.is_enum,
        )
    except SchemaError as exc:
        raise SchemaError(f"Record {record_name!r}: {exc}") from exc


def load_schema_data(
    data: Mapping[str, Any],
    *,
    functions: Optional[Mapping[str, Callable[[], Any]]] = None,
) -> SchemaDocument:
    """Build a SchemaDocument from an already parsed YAML mapping."""
    if not isinstance(data, dict) or not isinstance(data.get("records"), dict):
        raise SchemaError("Schema document must contain a 'records' mapping.")

    enums = _load_enums(data.get("enums") or {})
    reg = RecordRegistry()
    for record_name, raw in data["records"].items():
        raw = raw or {}
        where = f"Record {record_name!r}"
        markers = parse_record_markers(
            _as_list(raw.get("attrs"), f"{where} attrs"), where=where, functions=functions
        )
        fields = [
            _load_field(record_name, f, enums, functions)
            for f in raw.get("fields") or []
        ]
        reg.put_record(
            RecordDescriptor(
                name=str(record_name),
                fields=tuple(fields),
                doc=_as_list(raw.get("doc"), f"{where} doc"),
                rename_all=markers.rename_all,
                outer_default_policy=markers.default,
            )
        )
        logger.debug("loaded record %s with %d fields", record_name, len(fields))

    return SchemaDocument(registry=reg, root=data.get("root"))


def load_schema(
    text: str, *, functions: Optional[Mapping[str, Callable[[], Any]]] = None
) -> SchemaDocument:
    """Parse YAML schema text."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaError(f"Invalid YAML schema: {exc}") from exc
    return load_schema_data(data, functions=functions)


def load_schema_file(
    path: str | Path, *, functions: Optional[Mapping[str, Callable[[], Any]]] = None
) -> SchemaDocument:
    return load_schema(Path(path).read_text(encoding="utf-8"), functions=functions)
