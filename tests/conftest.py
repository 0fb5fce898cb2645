# tests/conftest.py
from __future__ import annotations
from pathlib import Path

import pytest

from skillreg.adapters.db.sqlite_package_store import SqlitePackageStore
from skillreg.adapters.db.sqlite_store import SQLite
from skillreg.adapters.fs.path_provider import PathProvider
from skillreg.domain import PackageId
from skillreg.services.context import RegistryContext, clear_ctx, set_ctx
from skillreg.services.eventbus import LocalEventBus
from skillreg.services.logging import attach_event_logger, setup_logging  # важное: создаёт файл-лог
from skillreg.services.package import DestinationLocks
from skillreg.services.policy.fs import SimpleFSPolicy
from skillreg.services.settings import Settings
from skillreg.services.store import Registry

REVIEW = PackageId("acme", "review")


# ---------- фикстура CLI-приложения ----------
@pytest.fixture
def cli_app():
    from skillreg.apps.cli.app import app

    return app


@pytest.fixture
def dest(tmp_path) -> Path:
    d = tmp_path / "dest"
    d.mkdir()
    return d


@pytest.fixture
def registry() -> Registry:
    """acme/review@1.0.0 и acme/review@1.2.0."""
    reg = Registry()
    reg.publish(REVIEW, "1.0.0", b"# Review v1.0.0\n", {"description": "code review skill"})
    reg.publish(REVIEW, "1.2.0", b"# Review v1.2.0\n", {"description": "code review skill"})
    return reg


@pytest.fixture
def events(_autocontext):
    seen = []
    _autocontext.bus.subscribe("package.", seen.append)
    return seen


# ---------- автofixture: поднимаем RegistryContext для каждого теста ----------
@pytest.fixture(autouse=True)
def _autocontext(tmp_path, monkeypatch):
    base_dir = tmp_path / "base"
    dest_dir = tmp_path / "dest"
    monkeypatch.setenv("SKILLREG_BASE_DIR", str(base_dir))
    monkeypatch.setenv("SKILLREG_DEST", str(dest_dir))
    monkeypatch.delenv("SKILLREG_LOCK_TIMEOUT", raising=False)

    settings = Settings.from_sources(env_file=None).with_overrides(base_dir=str(base_dir), profile="test")

    paths = PathProvider(settings)
    paths.ensure_tree()

    fs = SimpleFSPolicy()
    fs.allow_root(str(paths.base_dir()))

    bus = LocalEventBus()
    sql = SQLite(paths)  # БД в {state_dir}/registry.db
    ctx = RegistryContext(
        settings=settings,
        paths=paths,
        bus=bus,
        sql=sql,
        store=SqlitePackageStore(sql),
        fs=fs,
        locks=DestinationLocks(timeout=5.0),
    )

    set_ctx(ctx)
    logger = setup_logging(paths, console=False)
    attach_event_logger(bus, logger)

    try:
        yield ctx
    finally:
        clear_ctx()
