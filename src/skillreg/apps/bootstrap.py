# src/skillreg/apps/bootstrap.py
from __future__ import annotations
from typing import Optional
from threading import RLock

from skillreg.adapters.db import SQLite, SqlitePackageStore
from skillreg.adapters.fs.path_provider import PathProvider
from skillreg.services.context import RegistryContext, set_ctx
from skillreg.services.eventbus import LocalEventBus
from skillreg.services.logging import attach_event_logger, setup_logging
from skillreg.services.package import DestinationLocks
from skillreg.services.policy.fs import SimpleFSPolicy
from skillreg.services.settings import Settings


class _CtxHolder:
    _ctx: Optional[RegistryContext] = None
    _lock = RLock()

    @classmethod
    def init(cls, settings: Optional[Settings] = None, *, console_log: bool = True) -> RegistryContext:
        with cls._lock:
            cls._ctx = cls._build(settings or Settings.from_sources(), console_log=console_log)
            set_ctx(cls._ctx)  # публикуем
            return cls._ctx

    @staticmethod
    def _build(settings: Settings, *, console_log: bool = True) -> RegistryContext:
        paths = PathProvider(settings)
        paths.ensure_tree()

        fs = SimpleFSPolicy()
        for root in (paths.base_dir(), paths.state_dir(), paths.tmp_dir()):
            fs.allow_root(str(root))

        bus = LocalEventBus()
        root_logger = setup_logging(paths, settings.log_level, console=console_log)
        attach_event_logger(bus, root_logger.getChild("events"))

        sql = SQLite(paths)
        store = SqlitePackageStore(sql)

        return RegistryContext(
            settings=settings,
            paths=paths,
            bus=bus,
            sql=sql,
            store=store,
            fs=fs,
            locks=DestinationLocks(timeout=settings.lock_timeout_sec),
        )


def init_ctx(settings: Optional[Settings] = None, *, console_log: bool = True) -> RegistryContext:
    """Явная инициализация приложения и публикация контекста."""
    return _CtxHolder.init(settings, console_log=console_log)
