from __future__ import annotations

import keyword
import re
from typing import Callable, Dict, List, Optional

from toml_example.core.schema.errors import SchemaError

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def split_words(name: str) -> List[str]:
    """Split an identifier on '_', '-' and camelCase boundaries (lowercased words)."""
    words: List[str] = []
    for part in re.split(r"[_\-]+", name):
        if part:
            words.extend(w.lower() for w in _CAMEL_BOUNDARY.split(part) if w)
    return words


def _pascal(name: str) -> str:
    return "".join(w.capitalize() for w in split_words(name))


def _camel(name: str) -> str:
    pascal = _pascal(name)
    return pascal[:1].lower() + pascal[1:]


RENAME_RULES: Dict[str, Callable[[str], str]] = {
    "lowercase": str.lower,
    "UPPERCASE": str.upper,
    "PascalCase": _pascal,
    "camelCase": _camel,
    "snake_case": lambda name: "_".join(split_words(name)),
    "SCREAMING_SNAKE_CASE": lambda name: "_".join(split_words(name)).upper(),
    "kebab-case": lambda name: "-".join(split_words(name)),
    "SCREAMING-KEBAB-CASE": lambda name: "-".join(split_words(name)).upper(),
}

_ALIASES = {"lower": "lowercase", "upper": "UPPERCASE"}


def check_rename_rule(rule: Optional[str]) -> Optional[str]:
    """Return the canonical spelling of a rename_all rule, or raise SchemaError."""
    if rule is None:
        return None
    canonical = _ALIASES.get(rule, rule)
    if canonical not in RENAME_RULES:
        raise SchemaError(
            f"Unsupported rename rule {rule!r}. Allowed: {sorted(RENAME_RULES)}"
        )
    return canonical


def strip_keyword_escape(name: str) -> str:
    """`class_` -> `class`; a trailing underscore only escapes Python keywords."""
    if name.endswith("_") and not name.endswith("__"):
        bare = name[:-1]
        if keyword.iskeyword(bare):
            return bare
    return name


def normalize(
    raw_name: str,
    rename: Optional[str] = None,
    rename_all: Optional[str] = None,
) -> str:
    """Compute the output key of a field: explicit rename, then casing rule."""
    if rename:
        return rename
    name = strip_keyword_escape(raw_name)
    rule = check_rename_rule(rename_all)
    if rule is None:
        return name
    return RENAME_RULES[rule](name)
