from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence as Seq, Tuple

from toml_example.core.render.defaults import (
    REPRESENTATIVE_KEY,
    Present,
    example_value,
    resolve,
)
from toml_example.core.render.keys import normalize
from toml_example.core.render.values import format_key
from toml_example.core.schema.model import FieldDescriptor, RecordDescriptor
from toml_example.core.schema.shapes import Prefix, Sequence, nested_target

COMMENT = "#"


def comment_lines(doc: Seq[str]) -> List[str]:
    """`# line` for each doc line; blank doc lines become a bare `#`."""
    return [f"{COMMENT} {line}".rstrip() for line in doc]


@dataclass(frozen=True)
class _Scope:
    """Where the fields of one record are being written."""

    path: Tuple[str, ...] = ()
    key_prefix: str = ""
    commented: bool = False

    @property
    def mark(self) -> str:
        return f"{COMMENT} " if self.commented else ""

    def header(self, path: Tuple[str, ...], array: bool = False) -> str:
        dotted = ".".join(format_key(segment) for segment in path)
        return f"{self.mark}[[{dotted}]]" if array else f"{self.mark}[{dotted}]"


def _render_leaf(
    field: FieldDescriptor, key: str, record: RecordDescriptor, scope: _Scope
) -> List[str]:
    lines = comment_lines(field.doc)
    full_key = scope.key_prefix + format_key(key)

    resolved = resolve(field, record.outer_default_policy)
    if isinstance(resolved, Present):
        lines.append(f"{scope.mark}{full_key} = {resolved.text}")
    else:
        value = example_value(field.shape) or '""'
        hint = field.optional or isinstance(field.shape, Sequence)
        mark = f"{COMMENT} " if hint else scope.mark
        lines.append(f"{mark}{full_key} = {value}")

    lines.append("")
    return lines


def _render_fields(
    record: RecordDescriptor, scope: _Scope
) -> Tuple[List[str], List[str]]:
    """
    Render the fields of `record` in declaration order.

    Returns (body, tables): key/value lines of the current table, and the
    table sections that must follow them.
    """
    body: List[str] = []
    tables: List[str] = []

    for field in record.visible_fields():
        key = normalize(field.name, field.rename, record.rename_all)
        target = nested_target(field.shape)
        if target is None:
            body.extend(_render_leaf(field, key, record, scope))
            continue

        kind, nested, optional = target
        commented = scope.commented or (optional and not field.require)
        docs = comment_lines(field.doc) + comment_lines(nested.doc)
        sample = field.sample_key

        if field.flatten and kind == "table":
            # Spliced at the current level: no header, no key prefix.
            child = _Scope(scope.path, scope.key_prefix, commented)
            child_body, child_tables = _render_fields(nested, child)
            body.extend(docs + ([""] if nested.doc else []) + child_body)
            tables.extend(child_tables)
        elif field.flatten:
            entry = (sample or REPRESENTATIVE_KEY,)
            child = _Scope(entry, "", commented)
            child_body, child_tables = _render_fields(nested, child)
            tables.extend(docs + [child.header(entry)] + child_body + child_tables)
        elif isinstance(field.nesting, Prefix):
            child = _Scope(
                scope.path + (key,),
                f"{scope.key_prefix}{format_key(key)}.",
                commented,
            )
            child_body, child_tables = _render_fields(nested, child)
            body.extend(docs + child_body)
            tables.extend(child_tables)
        else:
            if kind == "map":
                path = scope.path + (key, sample or REPRESENTATIVE_KEY)
            else:
                path = scope.path + (sample or key,)
            child = _Scope(path, "", commented)
            child_body, child_tables = _render_fields(nested, child)
            header = child.header(path, array=kind == "array")
            tables.extend(docs + [header] + (child_body or [""]) + child_tables)

    return body, tables


def render(record: RecordDescriptor) -> str:
    """
    Render the commented TOML example of a linked record.

    The record doc is written once at the top, followed by a blank line.
    Leaf keys of each table come before its sub-tables so the document stays
    valid TOML. The text ends with exactly one blank line.
    """
    lines: List[str] = []
    if record.doc:
        lines.extend(comment_lines(record.doc))
        lines.append("")

    body, tables = _render_fields(record, _Scope())
    lines.extend(body)
    lines.extend(tables)

    while lines and lines[-1] == "":
        lines.pop()
    if not lines:
        return ""
    return "\n".join(lines) + "\n\n"
