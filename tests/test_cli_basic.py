import json
from pathlib import Path

import pytest

from godepmap.cli import main


@pytest.fixture
def use_resolver(monkeypatch):
    """Make the CLI use the given resolver instead of running `go list`."""
    recorded = {}

    def install(resolver):
        def factory(config):
            recorded["config"] = config
            return resolver

        monkeypatch.setattr("godepmap.cli.GoListResolver", factory)
        return recorded

    return install


def test_cli_dot_to_stdout(go_module: Path, app_resolver, use_resolver, capsys) -> None:
    use_resolver(app_resolver)

    exit_code = main([])
    captured = capsys.readouterr()

    assert exit_code == 0
    assert captured.out.startswith("digraph godep {\n")
    assert captured.out.endswith("}\n")
    assert '"example.com/app" -> "example.com/app/util";' in captured.out
    assert '"fmt" [' not in captured.out
    assert app_resolver.calls[0] == ("./", str(go_module))


def test_cli_all_includes_stdlib(go_module: Path, app_resolver, use_resolver, capsys) -> None:
    use_resolver(app_resolver)

    assert main(["--all"]) == 0
    out = capsys.readouterr().out

    assert '"fmt" [label="fmt" color="palegreen"' in out
    assert '"fmt" ->' not in out


def test_cli_dot_to_file(go_module: Path, app_resolver, use_resolver, capsys) -> None:
    use_resolver(app_resolver)
    output = go_module / "deps.dot"

    assert main(["-o", str(output)]) == 0

    assert capsys.readouterr().out == ""
    assert output.read_text(encoding="utf-8").startswith("digraph godep {")


def test_cli_json_output(go_module: Path, app_resolver, use_resolver, capsys) -> None:
    use_resolver(app_resolver)

    assert main(["--format", "json"]) == 0
    data = json.loads(capsys.readouterr().out)

    assert [p["import_path"] for p in data["packages"]] == ["example.com/app", "example.com/app/util"]
    assert data["packages"][0]["imports"] == ["example.com/app/util", "fmt"]
    assert data["failed"] == []


def test_cli_passes_build_tags(go_module: Path, app_resolver, use_resolver, capsys) -> None:
    recorded = use_resolver(app_resolver)

    assert main(["--tags", "integration, linux,"]) == 0

    assert list(recorded["config"].build_tags) == ["integration", "linux"]


def test_cli_ignore_options(go_module: Path, app_resolver, use_resolver, capsys) -> None:
    use_resolver(app_resolver)

    assert main(["--ignore", "example.com/app/util"]) == 0
    out = capsys.readouterr().out

    assert "example.com/app/util" not in out
    assert '"example.com/app" [' in out

    assert main(["--only-prefix", "example.com/app/", "--docs-url", "https://pkg.go.dev/"]) == 0
    out = capsys.readouterr().out
    assert '"example.com/app" [' not in out
    assert 'URL="https://pkg.go.dev/example.com/app/util"' in out


def test_cli_abort_on_resolution_error(go_module: Path, app_package_map, fake_resolver_cls, use_resolver, capsys) -> None:
    use_resolver(fake_resolver_cls(app_package_map, errors={"example.com/app/util": "no Go files"}))

    exit_code = main([])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert captured.out == ""
    assert "failed to import example.com/app/util (imported at level 2 by example.com/app)" in captured.err


def test_cli_keep_going_marks_failed_package(
    go_module: Path, app_package_map, fake_resolver_cls, use_resolver, capsys
) -> None:
    use_resolver(fake_resolver_cls(app_package_map, errors={"example.com/app/util": "no Go files"}))

    exit_code = main(["--keep-going"])
    out = capsys.readouterr().out

    assert exit_code == 0
    assert '"example.com/app/util" [label="example.com/app/util" color="red"' in out


def test_cli_max_depth(go_module: Path, app_resolver, use_resolver, capsys) -> None:
    use_resolver(app_resolver)

    assert main(["--max-depth", "1"]) == 0
    out = capsys.readouterr().out

    assert '"example.com/app" [' in out
    assert "example.com/app/util" not in out


def test_cli_debug_goes_to_stderr(go_module: Path, app_resolver, use_resolver, capsys, caplog) -> None:
    use_resolver(app_resolver)
    caplog.set_level("DEBUG", logger="godepmap")

    assert main(["-d"]) == 0
    captured = capsys.readouterr()

    assert "module name: example.com/app" in caplog.text
    assert "package example.com/app/util" in caplog.text
    assert "DEBUG" not in captured.out


def test_cli_svg_writes_output(go_module: Path, app_resolver, use_resolver, monkeypatch) -> None:
    """Cover the svg branch without requiring graphviz."""
    use_resolver(app_resolver)
    recorded = {}

    def fake_write_svg(dot: str, output: Path) -> None:
        recorded["dot"] = dot
        output.write_text(dot, encoding="utf-8")

    monkeypatch.setattr("godepmap.cli.write_svg", fake_write_svg)

    assert main(["--format", "svg", "-o", str(go_module / "out.svg")]) == 0
    assert (go_module / "out.svg").exists()
    assert "digraph godep" in recorded["dot"]
