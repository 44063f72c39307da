# ruff: noqa: E402
# Purpose: end-to-end test for the CLI 'toml-example'.
# - Invokes toml_example.tools.cli.main() with the showcase schemas (Python DSL and YAML)
# - Compares the output with the AIM (golden) file, byte for byte
# - Shows a short unified diff on mismatch

from pathlib import Path
import sys
import difflib

import pytest
import tomlkit

ROOT = Path(__file__).resolve().parents[3]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from toml_example.tools.cli import main as cli_main, run_export

SHOWCASE = ROOT / "examples" / "example_showcase"
AIM = SHOWCASE / "aim" / "server.toml"


def _assert_text_equal(generated: str, expected: str, label: str):
    if generated != expected:
        diff = "\n".join(
            difflib.unified_diff(
                expected.splitlines(),
                generated.splitlines(),
                fromfile=f"expected:{label}",
                tofile=f"generated:{label}",
                lineterm="",
                n=3,
            )
        )
        raise AssertionError(diff or f"{label}: trailing whitespace differs")


@pytest.mark.parametrize("schema_file", ["server.py", "server.yaml"])
def test_cli_e2e_writes_and_matches_aim(tmp_path: Path, schema_file: str):
    """
    Both schema front-ends describe the same Node record and must produce
    exactly the golden example.
    """
    out = tmp_path / "server.toml"
    cli_main(["--schema", str(SHOWCASE / "dsl" / schema_file), "--out", str(out)])

    assert out.exists(), "Output file was not written"
    _assert_text_equal(
        out.read_text(encoding="utf-8"), AIM.read_text(encoding="utf-8"), schema_file
    )
    assert sorted(p.name for p in tmp_path.iterdir()) == ["server.toml"]


def test_cli_prints_to_stdout_and_output_is_valid_toml(capsys):
    cli_main(["--schema", str(SHOWCASE / "dsl" / "server.yaml")])
    printed = capsys.readouterr().out
    _assert_text_equal(printed, AIM.read_text(encoding="utf-8"), "stdout")

    doc = tomlkit.parse(printed)
    assert doc["node-name"] == "node-1"
    assert doc["workers"] == 4
    assert doc["log-level"] == "Info"
    assert doc["limits"]["max_connections"] == 1024
    assert doc["services"]["http"]["port"] == 0
    assert "token" not in doc


def test_cli_verbose_reports_on_stderr(tmp_path: Path, capsys):
    out = tmp_path / "server.toml"
    cli_main(["--schema", str(SHOWCASE / "dsl" / "server.py"), "--out", str(out), "-v"])
    err = capsys.readouterr().err
    assert "[schema]" in err and "Node" in err
    assert f"[ok] wrote {out.resolve()}" in err


def test_cli_record_selection():
    text = run_export(schema_file=SHOWCASE / "dsl" / "server.py", record="Service")
    assert text == (
        "# Service with specific port\n"
        "\n"
        "# port should be a number\n"
        "port = 0\n"
        "\n"
        "# host to bind, all interfaces when unset\n"
        '# host = ""\n'
        "\n"
    )
    with pytest.raises(SystemExit, match="not found"):
        run_export(schema_file=SHOWCASE / "dsl" / "server.yaml", record="Nope")


def test_cli_failures_exit(tmp_path: Path):
    with pytest.raises(SystemExit, match="does not exist"):
        cli_main(["--schema", str(tmp_path / "nope.yaml")])

    bad = tmp_path / "bad.yaml"
    bad.write_text(
        "records:\n  A:\n    fields:\n      - {name: x, type: int, attrs: ['toml_example(color)']}\n",
        encoding="utf-8",
    )
    with pytest.raises(SystemExit, match="Invalid schema: .*color is not allowed attribute"):
        cli_main(["--schema", str(bad)])

    with pytest.raises(SystemExit, match="Cannot write example"):
        cli_main(
            [
                "--schema",
                str(SHOWCASE / "dsl" / "server.yaml"),
                "--out",
                str(tmp_path / "missing" / "server.toml"),
            ]
        )

    empty = tmp_path / "empty.py"
    empty.write_text("X = 1\n", encoding="utf-8")
    with pytest.raises(SystemExit, match="No @schema classes"):
        cli_main(["--schema", str(empty)])
