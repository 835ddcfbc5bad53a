import json
from pathlib import Path

from click.testing import CliRunner
from slimline.cli.main import cli


def write_tree(tmp_path: Path, tree: object) -> str:
    path = tmp_path / "tree.json"
    path.write_text(json.dumps(tree), encoding="utf-8")
    return str(path)


def test_lower_json(tmp_path: Path) -> None:
    tree = [{"type": "text", "raw": "hi #{name}"}]
    result = CliRunner().invoke(
        cli, ["lower", write_tree(tmp_path, tree), "--format", "json"]
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data == {
        "type": "multi",
        "children": [{"type": "dynamic", "expression": 'f"hi {escape_html((name))}"'}],
    }


def test_lower_raw_by_default(tmp_path: Path) -> None:
    tree = {"type": "output", "escape": None, "expression": "x"}
    result = CliRunner().invoke(
        cli,
        ["lower", write_tree(tmp_path, tree), "--format", "json", "--raw-by-default"],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["children"][0] == {
        "type": "dynamic",
        "expression": "x",
    }


def test_lower_tree_view_from_stdin() -> None:
    tree = {"type": "tag", "name": "p", "body": [{"type": "text", "raw": "hello"}]}
    result = CliRunner().invoke(cli, ["lower"], input=json.dumps(tree))

    assert result.exit_code == 0, result.output
    assert "<p>" in result.output
    assert "hello" in result.output


def test_lower_reports_errors(tmp_path: Path) -> None:
    tree = [{"type": "text", "raw": "#{broken"}]
    result = CliRunner().invoke(cli, ["lower", write_tree(tmp_path, tree)])

    assert result.exit_code == 1
    assert "Unterminated interpolation" in result.output


def test_lower_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{", encoding="utf-8")
    result = CliRunner().invoke(cli, ["lower", str(path)])
    assert result.exit_code == 1


def test_escape_command() -> None:
    result = CliRunner().invoke(cli, ["escape", "a #{b}"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == 'f"a {escape_html((b))}"'


def test_escape_command_literal() -> None:
    result = CliRunner().invoke(cli, ["escape", "price: \\#{5}"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == '"price: #{5}"'


def test_escape_command_safe_call() -> None:
    result = CliRunner().invoke(cli, ["escape", "#{safe(x)}", "--safe-call", "safe"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == 'f"{(safe(x))}"'
