from toml_example.core.schema.decorator import describe, schema
from toml_example.core.schema.errors import ExampleWriteError, SchemaError
from toml_example.core.schema.fields import field
from toml_example.core.schema.loader import load_schema, load_schema_file
from toml_example.core.schema.model import FieldDescriptor, RecordDescriptor
from toml_example.core.schema.registry import RecordRegistry, use_registry
from toml_example.core.schema.shapes import (
    Enumerated,
    ExplicitLiteral,
    ExternalFunction,
    InheritedFromParent,
    Mapping,
    Nested,
    Optional,
    Prefix,
    Scalar,
    Section,
    Sequence,
    ZeroValue,
)
from toml_example.core.tools.exporter import toml_example, write_toml_example

__all__ = [
    "Enumerated",
    "ExampleWriteError",
    "ExplicitLiteral",
    "ExternalFunction",
    "FieldDescriptor",
    "InheritedFromParent",
    "Mapping",
    "Nested",
    "Optional",
    "Prefix",
    "RecordDescriptor",
    "RecordRegistry",
    "Scalar",
    "SchemaError",
    "Section",
    "Sequence",
    "ZeroValue",
    "describe",
    "field",
    "load_schema",
    "load_schema_file",
    "schema",
    "toml_example",
    "use_registry",
    "write_toml_example",
]
