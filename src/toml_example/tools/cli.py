from __future__ import annotations

import argparse
import importlib.util
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple, Type

from toml_example.core.schema.errors import ExampleWriteError, SchemaError
from toml_example.core.schema.loader import load_schema_file
from toml_example.core.schema.registry import RecordRegistry, use_registry
from toml_example.core.tools.exporter import toml_example, write_toml_example

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


def _import_module_from_file(pyfile: Path):
    """
    Import a Python file as a transient module; no package layout required.
    The module key is derived from the path to avoid name collisions.
    """
    module_name = f"schema_{pyfile.stem}_{abs(hash(pyfile.resolve()))}"
    spec = importlib.util.spec_from_file_location(module_name, pyfile)
    if spec is None or spec.loader is None:
        raise SystemExit(f"Cannot import schema module {pyfile}.")
    mod = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = mod
    spec.loader.exec_module(mod)
    return mod


def _collect_schema_classes(mod) -> List[Type[Any]]:
    """
    Collect classes decorated by @schema (they carry __schema_name__).
    """
    out: List[Type[Any]] = []
    for v in vars(mod).values():
        if isinstance(v, type) and getattr(v, "__schema_name__", None):
            out.append(v)
    return out


def _pick(names: List[str], roots: List[str], requested: Optional[str]) -> str:
    if requested:
        if requested not in names:
            raise SystemExit(f"Record {requested!r} not found; available: {', '.join(names)}.")
        return requested
    if len(roots) == 1:
        return roots[0]
    raise SystemExit(
        f"Several candidate records ({', '.join(roots or names)}); choose one with --record."
    )


def _load_python(
    schema_file: Path, requested: Optional[str], verbose: bool
) -> Tuple[RecordRegistry, str]:
    reg = RecordRegistry()
    with use_registry(reg):
        mod = _import_module_from_file(schema_file)
    found = _collect_schema_classes(mod)
    if verbose and found:
        print(f"[schema] {schema_file}: {', '.join(c.__name__ for c in found)}", file=sys.stderr)
    if not found:
        raise SystemExit(f"No @schema classes found in {schema_file}.")
    return reg, _pick(list(reg.get_records()), reg.roots(), requested)


def _load_yaml(
    schema_file: Path, requested: Optional[str], verbose: bool
) -> Tuple[RecordRegistry, str]:
    doc = load_schema_file(schema_file)
    names = list(doc.registry.get_records())
    if verbose:
        print(f"[schema] {schema_file}: {', '.join(names)}", file=sys.stderr)
    if requested and requested not in names:
        raise SystemExit(f"Record {requested!r} not found; available: {', '.join(names)}.")
    return doc.registry, doc.root_name(requested)


def run_export(
    *,
    schema_file: Path,
    out: Optional[Path] = None,
    record: Optional[str] = None,
    verbose: bool = False,
) -> str:
    """
    High-level pipeline:
      1) Load records from a Python module (@schema classes) or a YAML schema
      2) Pick the record to render (--record, declared root, or the only root)
      3) Render the example and write it to `out` when given
    Returns:
      The rendered TOML example.
    """
    if not schema_file.exists():
        raise SystemExit(f"Schema file {schema_file} does not exist.")

    loader = _load_yaml if schema_file.suffix.lower() in _YAML_SUFFIXES else _load_python
    try:
        reg, name = loader(schema_file, record, verbose)
        text = toml_example(name, registry=reg)
        if out is not None:
            write_toml_example(name, out, registry=reg)
    except SchemaError as exc:
        raise SystemExit(f"Invalid schema: {exc}") from exc
    except ExampleWriteError as exc:
        raise SystemExit(f"Cannot write example: {exc}") from exc

    logger.debug("rendered record %s from %s", name, schema_file)
    if verbose and out is not None:
        print(f"[ok] wrote {out}", file=sys.stderr)
    return text


def main(argv: List[str] | None = None) -> None:
    """
    CLI entry point.
    """
    ap = argparse.ArgumentParser(
        prog="toml-example",
        description="Generate a commented example TOML config from a record schema.",
    )
    ap.add_argument(
        "--schema",
        required=True,
        help="Python module with @schema classes, or a YAML schema file.",
    )
    ap.add_argument("--record", default=None, help="Record to render (default: the root).")
    ap.add_argument("--out", default=None, help="Output file (default: stdout).")
    ap.add_argument("-v", "--verbose", action="store_true", help="Verbose logs.")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    out = Path(args.out).resolve() if args.out else None
    text = run_export(
        schema_file=Path(args.schema).resolve(),
        out=out,
        record=args.record,
        verbose=args.verbose,
    )
    if out is None:
        sys.stdout.write(text)


if __name__ == "__main__":
    main()
