# tests/test_cli_basic.py
from typer.testing import CliRunner


def test_cli_help(cli_app):
    r = CliRunner().invoke(cli_app, ["--help"])
    assert r.exit_code == 0
    assert "Usage" in r.stdout or "использование" in r.stdout.lower()
    assert "registry" in r.stdout
    assert "package" in r.stdout


def test_where_reports_paths(cli_app, tmp_path):
    r = CliRunner().invoke(cli_app, ["where"])
    assert r.exit_code == 0, r.output
    assert str((tmp_path / "base").resolve()) in r.stdout
    assert "registry.db" in r.stdout
    assert str((tmp_path / "dest").resolve()) in r.stdout


def test_base_dir_option_overrides_env(cli_app, tmp_path):
    other = tmp_path / "other-base"
    r = CliRunner().invoke(cli_app, ["--base-dir", str(other), "registry", "packages", "--json"])
    assert r.exit_code == 0, r.output
    assert (other / "state" / "registry.db").exists()
