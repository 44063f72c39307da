from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from toml_example.core.render.renderer import render
from toml_example.core.schema.errors import ExampleWriteError
from toml_example.core.schema.model import RecordDescriptor
from toml_example.core.schema.registry import RecordRegistry, get_current_registry

logger = logging.getLogger(__name__)


def build_record(
    record: Any,
    *,
    registry: Optional[RecordRegistry] = None,
) -> RecordDescriptor:
    """
    Resolve `record` (RecordDescriptor, @schema class or registered name) and
    link every nested reference.

    Raises SchemaError for unknown or cyclic records.
    """
    reg = registry or get_current_registry()
    return reg.link(record)


def toml_example(
    record: Any,
    *,
    registry: Optional[RecordRegistry] = None,
) -> str:
    """
    Return the commented TOML example of a record:
      # doc of the record
      <blank line>
      # doc of a field
      key = value
      <blank line>
      ...
    """
    return render(build_record(record, registry=registry))


def toml_examples(
    records: Iterable[Any],
    *,
    registry: Optional[RecordRegistry] = None,
) -> Dict[str, str]:
    """Convenience: record name -> TOML example, for several records at once."""
    out: Dict[str, str] = {}
    for record in records:
        linked = build_record(record, registry=registry)
        out[linked.name] = render(linked)
    return out


def write_toml_example(
    record: Any,
    path: str | Path,
    *,
    registry: Optional[RecordRegistry] = None,
) -> Path:
    """
    Render the example into memory, then persist it to `path`.

    The text goes to a sibling temporary file that replaces `path` once fully
    written, so a failed write never leaves a partial document behind.
    Raises ExampleWriteError carrying the underlying OSError.
    """
    text = toml_example(record, registry=registry)
    path = Path(path)
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        with open(tmp, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        os.replace(tmp, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise ExampleWriteError(path, exc) from exc
    logger.debug("wrote TOML example (%d bytes) to %s", len(text), path)
    return path
