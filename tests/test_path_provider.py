"""Tests covering path resolution helpers exposed through the global context."""

from __future__ import annotations

from pathlib import Path

from skillreg.adapters.fs.path_provider import PathProvider
from skillreg.services.context import get_ctx, use_ctx
from skillreg.services.settings import Settings


def test_path_provider_layout(tmp_path):
    settings = Settings.from_sources(env_file=None).with_overrides(base_dir=tmp_path / "skillreg-test", profile="test")
    provider = PathProvider(settings)

    base = Path(settings.base_dir).expanduser().resolve()
    assert provider.base_dir() == base
    assert provider.state_dir() == base / "state"
    assert provider.logs_dir() == base / "logs"
    provider.ensure_tree()
    assert provider.tmp_dir().is_dir()


def test_context_paths_live_under_base_dir():
    ctx = get_ctx()
    base = Path(ctx.paths.base_dir())
    assert Path(ctx.sql.path).parent == Path(ctx.paths.state_dir())
    assert Path(ctx.paths.logs_dir()).parent == base


def test_settings_read_env_file(tmp_path, monkeypatch):
    monkeypatch.delenv("SKILLREG_BASE_DIR", raising=False)
    monkeypatch.delenv("SKILLREG_DEST", raising=False)
    env = tmp_path / ".env"
    env.write_text(f"SKILLREG_BASE_DIR={tmp_path / 'from-env'}\nSKILLREG_LOCK_TIMEOUT=2.5\n# comment\n", encoding="utf-8")
    s = Settings.from_sources(env_file=str(env))
    assert s.base_dir == (tmp_path / "from-env").resolve()
    assert s.lock_timeout_sec == 2.5
    assert s.destination() == (Path.cwd() / ".skills").resolve()


def test_settings_ignore_unsafe_overrides(tmp_path):
    s = Settings.from_sources(env_file=None)
    t = s.with_overrides(sql="elsewhere.db", profile="other", log_level=None)
    assert not hasattr(t, "sql")
    assert t.profile == "other"
    assert t.log_level == s.log_level


def test_use_ctx_restores_previous_context(tmp_path):
    outer = get_ctx()
    inner_settings = outer.settings.with_overrides(base_dir=tmp_path / "inner")
    inner = type(outer)(
        settings=inner_settings,
        paths=PathProvider(inner_settings),
        bus=outer.bus,
        sql=outer.sql,
        store=outer.store,
        fs=outer.fs,
        locks=outer.locks,
    )
    with use_ctx(inner) as ctx:
        assert get_ctx() is ctx
        assert ctx.paths.base_dir() == (tmp_path / "inner").resolve()
    assert get_ctx() is outer
