from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

from toml_example.core.schema.errors import SchemaError
from toml_example.core.schema.shapes import (
    INLINE,
    DefaultPolicy,
    ExplicitLiteral,
    ExternalFunction,
    NestingPolicy,
    ZeroValue,
    as_nesting,
)

# `toml_example(...)` / `serde(...)`, optionally wrapped in `#[...]`
_MARKER = re.compile(r"^\s*(?:#\[)?\s*(?P<ns>[A-Za-z_]\w*)\s*\((?P<body>.*)\)\s*\]?\s*$", re.S)

_OPENERS = {"[": "]", "{": "}", "(": ")"}


def split_unenclosed(text: str, sep: str = ",") -> List[str]:
    """
    Split on `sep` where it is not enclosed in quotes, brackets, braces or
    parentheses. Backslash escapes the next character.
    """
    parts: List[str] = []
    current: List[str] = []
    closers: List[str] = []
    quote: Optional[str] = None
    escaped = False
    for ch in text:
        current.append(ch)
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in _OPENERS:
            closers.append(_OPENERS[ch])
        elif closers and ch == closers[-1]:
            closers.pop()
        elif ch == sep and not closers:
            current.pop()
            parts.append("".join(current))
            current = []
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def parse_marker(text: str) -> Tuple[str, List[Tuple[str, Optional[str]]]]:
    """
    'toml_example(default = 7, nesting)' ->
        ("toml_example", [("default", "7"), ("nesting", None)])
    """
    match = _MARKER.match(text)
    if not match:
        raise SchemaError(f"Malformed marker {text!r}; expected 'name(args)'.")
    items: List[Tuple[str, Optional[str]]] = []
    for arg in split_unenclosed(match.group("body")):
        key, eq, value = arg.partition("=")
        items.append((key.strip(), value.strip() if eq else None))
    return match.group("ns"), items


def _unquote(value: str) -> str:
    return value.strip().strip('"')


Functions = Optional[Mapping[str, Callable[[], Any]]]


def _default_fn(value: str, functions: Functions) -> ExternalFunction:
    name = _unquote(value)
    if functions and name in functions:
        return ExternalFunction(functions[name])
    return ExternalFunction(name)


@dataclass
class FieldMarkers:
    defaults: List[DefaultPolicy] = field(default_factory=list)
    nesting: NestingPolicy = INLINE
    flatten: bool = False
    skip: bool = False
    require: bool = False
    is_enum: bool = False
    rename: Optional[str] = None


@dataclass
class RecordMarkers:
    rename_all: Optional[str] = None
    default: Optional[DefaultPolicy] = None


def parse_field_markers(
    attrs: Iterable[str], *, where: str = "field", functions: Functions = None
) -> FieldMarkers:
    """
    Read the markers of one field in declaration order.

    Defaults from both namespaces are kept in the order they appear, so the
    resolver can let the first-declared provider win. `functions` maps bare
    default-function names to callables; other names are import paths.
    """
    out = FieldMarkers()
    for text in attrs:
        ns, items = parse_marker(text)
        for key, value in items:
            if ns == "toml_example":
                _toml_example_field_marker(out, key, value, where)
            elif ns == "serde":
                _serde_field_marker(out, key, value, where, functions)
    return out


def _toml_example_field_marker(
    out: FieldMarkers, key: str, value: Optional[str], where: str
) -> None:
    if key == "default":
        out.defaults.append(ExplicitLiteral(value) if value is not None else ZeroValue())
    elif key == "nesting":
        out.nesting = as_nesting(value if value is not None else True)
    elif key == "require":
        out.require = True
    elif key == "skip":
        out.skip = True
    elif key in ("enum", "is_enum"):
        out.is_enum = True
    elif key == "flatten":
        out.flatten = True
    else:
        raise SchemaError(f"{where}: {key} is not allowed attribute")


def _serde_field_marker(
    out: FieldMarkers, key: str, value: Optional[str], where: str, functions: Functions
) -> None:
    if key == "default":
        if value is None:
            out.defaults.append(ZeroValue())
        else:
            out.defaults.append(_default_fn(value, functions))
    elif key in ("skip", "skip_deserializing"):
        out.skip = True
    elif key == "flatten":
        out.flatten = True
    elif key == "rename" and value is not None:
        out.rename = _unquote(value)
    # other serde markers do not affect the example


def parse_record_markers(
    attrs: Iterable[str], *, where: str = "record", functions: Functions = None
) -> RecordMarkers:
    out = RecordMarkers()
    for text in attrs:
        ns, items = parse_marker(text)
        for key, value in items:
            if ns == "serde" and key == "rename_all" and value is not None:
                out.rename_all = _unquote(value)
            elif key == "default" and ns in ("serde", "toml_example"):
                if value is None:
                    out.default = ZeroValue()
                elif ns == "serde":
                    out.default = _default_fn(value, functions)
                else:
                    raise SchemaError(
                        f"{where}: setting a default value on a record is not supported!"
                    )
            elif ns == "toml_example":
                raise SchemaError(f"{where}: {key} is not allowed attribute")
    return out
