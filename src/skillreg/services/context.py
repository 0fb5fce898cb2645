# src/skillreg/services/context.py
from __future__ import annotations
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Optional

from skillreg.ports import EventBus, FSPolicy, PackageStore, PathProvider, SQL
from skillreg.services.package import DestinationLocks, Installer, PackageManager
from skillreg.services.resolver import Resolver
from skillreg.services.settings import Settings

_CTX: ContextVar[Optional["RegistryContext"]] = ContextVar("skillreg_ctx", default=None)


def set_ctx(ctx: RegistryContext) -> None:
    """Устанавливает текущий RegistryContext (делает доступным через get_ctx)."""
    _CTX.set(ctx)


def get_ctx() -> RegistryContext:
    """Возвращает текущий RegistryContext или бросает ошибку, если не инициализирован."""
    ctx = _CTX.get()
    if ctx is None:
        raise RuntimeError("RegistryContext is not initialized. Call init_ctx(...) during app bootstrap.")
    return ctx


def clear_ctx() -> None:
    _CTX.set(None)


@contextmanager
def use_ctx(ctx: RegistryContext):
    """Временная подмена контекста (удобно в тестах)."""
    token = _CTX.set(ctx)
    try:
        yield ctx
    finally:
        _CTX.reset(token)


@dataclass(slots=True)
class RegistryContext:
    settings: Settings
    paths: PathProvider
    bus: EventBus
    sql: SQL
    store: PackageStore
    fs: FSPolicy
    locks: DestinationLocks

    _manager: Optional[PackageManager] = field(default=None, init=False, repr=False)

    @property
    def manager(self) -> PackageManager:
        mgr = self._manager
        if mgr is None:
            resolver = Resolver(self.store, bus=self.bus)
            installer = Installer(resolver=resolver, fs=self.fs, locks=self.locks, bus=self.bus)
            mgr = PackageManager(
                store=self.store,
                resolver=resolver,
                installer=installer,
                fs=self.fs,
                bus=self.bus,
                default_destination=self.settings.destination(),
            )
            object.__setattr__(self, "_manager", mgr)
        return mgr
