# src/skillreg/services/package/manager.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from skillreg.adapters.fs.package_source import iter_package_dirs, read_package_dir
from skillreg.domain import InstalledPackage, PackageRef, SemVer, VersionInfo
from skillreg.domain.errors import DuplicateVersionError, InvalidPackageRefError, InvalidPackageSourceError
from skillreg.ports import EventBus, PackageStore
from skillreg.services.eventbus import emit
from skillreg.services.package.installer import Installer
from skillreg.services.package.locks import CancelToken
from skillreg.services.resolver import Resolver

_log = logging.getLogger("skillreg.manager")


@dataclass(slots=True)
class ImportReport:
    published: list[VersionInfo] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def _ref(ref: PackageRef | str) -> PackageRef:
    return ref if isinstance(ref, PackageRef) else PackageRef.parse(ref)


class PackageManager:
    """
    Внешний контракт реестра: resolve / install / uninstall / upgrade / publish.
    Принимает ссылки вида ``namespace/name[@version-or-range]``.
    """

    def __init__(
        self,
        *,
        store: PackageStore,
        resolver: Optional[Resolver] = None,
        installer: Optional[Installer] = None,
        fs=None,
        bus: Optional[EventBus] = None,
        default_destination: Optional[Path] = None,
    ):
        self.store = store
        self.bus = bus
        self.fs = fs
        self.resolver = resolver or Resolver(store, bus=bus)
        self.installer = installer or Installer(resolver=self.resolver, fs=fs, bus=bus)
        self.default_destination = default_destination

    def _dest(self, destination: Optional[Path | str]) -> Path:
        raw = destination if destination is not None else self.default_destination
        if raw is None:
            raise ValueError("no destination given and no default destination configured")
        dest = Path(raw).expanduser().resolve()
        # каталог, явно указанный вызывающим, становится разрешённым корнем
        if self.fs is not None and hasattr(self.fs, "allow_root"):
            self.fs.allow_root(str(dest))
        return dest

    # --- публикация ---

    def publish(self, ref: PackageRef | str, content: bytes | str, metadata: Optional[Mapping[str, str]] = None) -> VersionInfo:
        """``ref`` must carry an exact version: ``acme/review@1.2.0``."""
        r = _ref(ref)
        if r.constraint is None:
            raise InvalidPackageRefError(str(r), "publish needs an exact version after '@'")
        version = SemVer.parse(r.constraint)
        meta = {str(k): str(v) for k, v in (metadata or {}).items()}
        entry = meta.get("entry")
        if entry is not None and (Path(entry).name != entry or entry in (".", "..")):
            raise InvalidPackageSourceError(str(r), f"entry must be a plain file name, got {entry!r}")
        pv = self.store.publish(r.id, version, content, meta)
        emit(self.bus, "package.published", {"package": str(r.id), "version": str(version)}, "pkg.mgr")
        return pv.info()

    def publish_dir(self, path: Path | str) -> VersionInfo:
        src = read_package_dir(path)
        return self.publish(PackageRef(src.id, str(src.version)), src.content, src.metadata)

    def import_tree(self, root: Path | str) -> ImportReport:
        """Публикует все каталоги пакетов под root; уже опубликованные версии пропускаются."""
        report = ImportReport()
        for pkg_dir in iter_package_dirs(root):
            try:
                report.published.append(self.publish_dir(pkg_dir))
            except DuplicateVersionError as exc:
                _log.warning("import.skipped", extra={"extra": {"path": str(pkg_dir), "reason": str(exc)}})
                report.skipped.append(str(exc))
        return report

    # --- запросы ---

    def versions(self, ref: PackageRef | str) -> list[VersionInfo]:
        r = _ref(ref)
        if r.constraint is None:
            return [pv.info() for pv in self.store.list_versions(r.id)]
        return [pv.info() for pv in self.store.get(r.id, r.constraint)]

    def resolve(self, ref: PackageRef | str) -> VersionInfo:
        return self.resolver.resolve_ref(_ref(ref)).info()

    def packages(self) -> list[str]:
        return [str(pid) for pid in self.store.packages()]

    # --- установка ---

    def install(self, ref: PackageRef | str, destination: Optional[Path | str] = None, *, cancel: Optional[CancelToken] = None) -> InstalledPackage:
        r = _ref(ref)
        pv = self.resolver.resolve(r.id, r.constraint)
        return self.installer.install(pv, self._dest(destination), cancel=cancel)

    def uninstall(self, ref: PackageRef | str, destination: Optional[Path | str] = None) -> InstalledPackage:
        r = _ref(ref)
        return self.installer.uninstall(r.id, self._dest(destination), r.constraint)

    def upgrade(self, ref: PackageRef | str, destination: Optional[Path | str] = None, *, cancel: Optional[CancelToken] = None) -> InstalledPackage:
        r = _ref(ref)
        return self.installer.upgrade(r.id, r.constraint, self._dest(destination), cancel=cancel)

    def list_installed(self, destination: Optional[Path | str] = None) -> list[InstalledPackage]:
        return self.installer.installed(self._dest(destination))

    def get_installed(self, ref: PackageRef | str, destination: Optional[Path | str] = None) -> Optional[InstalledPackage]:
        return self.installer.get_installed(_ref(ref).id, self._dest(destination))
