from __future__ import annotations

from pathlib import Path


class SchemaError(ValueError):
    """Raised when a record or field description cannot be built or linked."""


class ExampleWriteError(OSError):
    """
    The TOML example could not be persisted.

    Carries the target path; the underlying OSError is chained as __cause__.
    """

    def __init__(self, path: str | Path, cause: OSError):
        super().__init__(cause.errno, cause.strerror or str(cause), str(path))
        self.path = Path(path)
