# Purpose: key normalization and TOML literal formatting.

from enum import Enum

import pytest

from toml_example.core.render.keys import (
    check_rename_rule,
    normalize,
    split_words,
    strip_keyword_escape,
)
from toml_example.core.render.values import format_key, quote, quote_once, to_toml_literal
from toml_example.core.schema.errors import SchemaError
from toml_example.core.schema.shapes import Enumerated, Optional


class Mode(Enum):
    Fast = "f"
    Slow = "s"


@pytest.mark.parametrize(
    "rule, expected",
    [
        ("lowercase", "themename"),
        ("UPPERCASE", "THEMENAME"),
        ("PascalCase", "ThemeName"),
        ("camelCase", "themeName"),
        ("snake_case", "theme_name"),
        ("SCREAMING_SNAKE_CASE", "THEME_NAME"),
        ("kebab-case", "theme-name"),
        ("SCREAMING-KEBAB-CASE", "THEME-NAME"),
    ],
)
def test_rename_rules(rule, expected):
    assert normalize("themeName", rename_all=rule) == expected


def test_split_words():
    assert split_words("HTTPServer_port") == ["http", "server", "port"]
    assert split_words("max-connections") == ["max", "connections"]


def test_explicit_rename_wins_over_rule():
    assert normalize("themeName", rename="theme", rename_all="SCREAMING_SNAKE_CASE") == "theme"
    assert normalize("themeName") == "themeName"


def test_keyword_escape():
    assert strip_keyword_escape("class_") == "class"
    assert strip_keyword_escape("from_") == "from"
    # builtins and plain names keep their underscore
    assert strip_keyword_escape("type_") == "type_"
    assert strip_keyword_escape("id_") == "id_"
    assert strip_keyword_escape("max_") == "max_"
    assert strip_keyword_escape("name_") == "name_"
    assert strip_keyword_escape("__dunder__") == "__dunder__"
    assert normalize("class_", rename_all="UPPERCASE") == "CLASS"
    assert normalize("id_") == "id_"


def test_unknown_rename_rule():
    assert check_rename_rule(None) is None
    assert check_rename_rule("upper") == "UPPERCASE"
    with pytest.raises(SchemaError, match="Unsupported rename rule"):
        check_rename_rule("Train-Case")


def test_format_key_quotes_only_when_needed():
    assert format_key("max_connections") == "max_connections"
    assert format_key("node-name") == "node-name"
    assert format_key("a b") == '"a b"'
    assert format_key("café") == '"café"'


def test_quote_and_quote_once():
    assert quote("Info") == '"Info"'
    assert quote('say "hi"') == '"say \\"hi\\""'
    assert quote_once("Info") == '"Info"'
    assert quote_once('"Info"') == '"Info"'
    assert quote_once("'Info'") == "'Info'"


def test_to_toml_literal():
    assert to_toml_literal(7) == "7"
    assert to_toml_literal(True) == "true"
    assert to_toml_literal("x") == '"x"'
    assert to_toml_literal([1, 2]) == "[1, 2]"
    assert to_toml_literal(Mode.Slow) == '"Slow"'
    shape = Optional(Enumerated(variants=tuple(Mode), display=lambda m: m.value))
    assert to_toml_literal(Mode.Slow, shape) == '"s"'
