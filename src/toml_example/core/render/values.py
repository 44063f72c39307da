from __future__ import annotations

import enum
from collections import abc
from typing import Any

import tomlkit
from tomlkit.items import Item

from toml_example.core.schema.shapes import Enumerated, Shape, unwrap_optional


def format_key(key: str) -> str:
    """Bare key when possible, quoted key otherwise."""
    return tomlkit.key(key).as_string()


def quote(text: str) -> str:
    """Render text as a TOML basic string."""
    return tomlkit.item(text).as_string()


def quote_once(literal: str) -> str:
    """Wrap a literal in quotes unless it is already a quoted string."""
    if len(literal) >= 2 and literal[0] == literal[-1] and literal[0] in "\"'":
        return literal
    return quote(literal)


def _to_item(value: Any, shape: Shape | None) -> Item:
    inner = unwrap_optional(shape)[0] if shape is not None else None
    if isinstance(inner, Enumerated) and value in inner.variants:
        return tomlkit.item(inner.display(value))
    if isinstance(value, enum.Enum):
        return tomlkit.item(value.name)
    if isinstance(value, abc.Mapping):
        table = tomlkit.inline_table()
        for key, item in value.items():
            table.append(str(key), _to_item(item, None))
        return table
    if isinstance(value, (list, tuple)):
        array = tomlkit.array()
        for item in value:
            array.append(_to_item(item, None))
        return array
    return tomlkit.item(value)


def to_toml_literal(value: Any, shape: Shape | None = None) -> str:
    """
    Convert a Python value returned by a default provider into TOML literal text.

    Enum members are written by name (through the shape's display function when
    the shape is Enumerated); mappings become inline tables.
    """
    return _to_item(value, shape).as_string()
