import runpy

import pytest
from click.testing import CliRunner

from tinygen import __version__
from tinygen.build import BuildError
from tinygen.cli import cli, main


def test_cli_build(monkeypatch, tmp_path):
    runner = CliRunner()
    (tmp_path / "index.md").write_text("# Home\n", encoding="utf-8")
    (tmp_path / "style.css").write_text("body {}", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(cli, ["build"], catch_exceptions=False)

    assert result.exit_code == 0
    assert "Built 1 pages and copied 1 files" in result.output
    assert (tmp_path / "out" / "index.html").exists()


def test_cli_build_failure(monkeypatch, tmp_path):
    runner = CliRunner()
    monkeypatch.chdir(tmp_path)

    def fake_build_site(root):
        raise BuildError(root / "bad.md", "Invalid front matter: oops")

    monkeypatch.setattr("tinygen.build.build_site", fake_build_site)
    result = runner.invoke(cli, ["build"])

    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "File: bad.md" in result.output
    assert "Error: Invalid front matter: oops" in result.output


def test_cli_build_reports_config_errors(monkeypatch, tmp_path):
    runner = CliRunner()
    (tmp_path / "tinygen.yaml").write_text("port: [\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(cli, ["build"])
    assert result.exit_code != 0
    assert "invalid YAML" in result.output

    result = runner.invoke(cli, ["serve"])
    assert result.exit_code != 0
    assert "invalid YAML" in result.output


def test_cli_serve(monkeypatch, tmp_path):
    runner = CliRunner()
    (tmp_path / "tinygen.yaml").write_text("src: site\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    called = {}

    class DummyServer:
        def __init__(self, generator, http_port=None, ws_port=None):
            called["src"] = generator.src_dir
            called["port"] = http_port
            called["ws_port"] = ws_port

        def start(self):
            called["started"] = True

    monkeypatch.setattr("tinygen.server.DevServer", DummyServer)
    result = runner.invoke(
        cli, ["serve", "--port", "5050", "--ws-port", "5051"], catch_exceptions=False
    )

    assert result.exit_code == 0
    assert called == {
        "src": (tmp_path / "site").resolve(),
        "port": 5050,
        "ws_port": 5051,
        "started": True,
    }


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert f"tinygen, version {__version__}" in result.output


def test_main_runs_cli(monkeypatch):
    monkeypatch.setattr("sys.argv", ["tinygen", "--help"])
    with pytest.raises(SystemExit) as excinfo:
        main()
    assert excinfo.value.code == 0


def test_module_entry_point(monkeypatch):
    monkeypatch.setattr("sys.argv", ["tinygen", "--help"])
    with pytest.raises(SystemExit):
        runpy.run_module("tinygen", run_name="__main__")

