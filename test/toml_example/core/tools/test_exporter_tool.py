# Purpose: toml_example / write_toml_example entry points.

from pathlib import Path

import pytest

from toml_example.core.schema.decorator import schema
from toml_example.core.schema.errors import ExampleWriteError, SchemaError
from toml_example.core.schema.fields import field
from toml_example.core.schema.registry import RecordRegistry
from toml_example.core.tools.exporter import toml_example, toml_examples, write_toml_example


@pytest.fixture()
def reg():
    reg = RecordRegistry()

    @schema(registry=reg)
    class Database:
        """Database connection"""

        url = field(str, doc="Connection URL", default="sqlite://")

    @schema(registry=reg)
    class App:
        """Application settings"""

        debug = field(bool, doc="Debug mode", zero_default=True)
        database = field(Database, nesting=True)

    return reg


EXPECTED = (
    "# Application settings\n"
    "\n"
    "# Debug mode\n"
    "debug = false\n"
    "\n"
    "# Database connection\n"
    "[database]\n"
    "# Connection URL\n"
    'url = "sqlite://"\n'
    "\n"
)


def test_toml_example_by_name_and_descriptor(reg):
    """The same record rendered through every accepted handle."""
    by_name = toml_example("App", registry=reg)
    assert by_name == EXPECTED
    assert toml_example(reg.get_records()["App"], registry=reg) == EXPECTED


def test_toml_examples_maps_names(reg):
    out = toml_examples(["App", "Database"], registry=reg)
    assert list(out) == ["App", "Database"]
    assert out["Database"].startswith("# Database connection\n\n")


def test_unknown_record(reg):
    with pytest.raises(SchemaError):
        toml_example("Missing", registry=reg)


def test_write_toml_example(tmp_path: Path, reg):
    """The file holds exactly the rendered text and no temporary file is left."""
    target = tmp_path / "app.toml"
    target.write_text("stale", encoding="utf-8")

    written = write_toml_example("App", target, registry=reg)

    assert written == target
    assert target.read_text(encoding="utf-8") == EXPECTED
    assert sorted(p.name for p in tmp_path.iterdir()) == ["app.toml"]


def test_write_failure_is_reported(tmp_path: Path, reg):
    target = tmp_path / "missing-dir" / "app.toml"
    with pytest.raises(ExampleWriteError) as info:
        write_toml_example("App", target, registry=reg)
    assert info.value.path == target
    assert isinstance(info.value.__cause__, OSError)
    assert not target.parent.exists()


def test_write_does_not_render_invalid_schema(tmp_path: Path):
    target = tmp_path / "x.toml"
    with pytest.raises(SchemaError):
        write_toml_example("Missing", target, registry=RecordRegistry())
    assert not target.exists()
