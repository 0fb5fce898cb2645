# src/skillreg/services/package/installer.py
from __future__ import annotations
import logging
import os
import tempfile
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from skillreg.config import const
from skillreg.domain import InstalledPackage, PackageId, PackageVersion, VersionConstraint, parse_constraint
from skillreg.domain.errors import (
    IOFailure,
    InvalidInputError,
    NotInstalledError,
    RegistryError,
    InstallCancelledError,
)
from skillreg.ports import EventBus, FSPolicy
from skillreg.services.eventbus import emit
from skillreg.services.fs.safe_io import read_json, remove_empty_parents, remove_tree, write_json_atomic
from skillreg.services.package.locks import CancelToken, DestinationLocks
from skillreg.services.resolver import Resolver

_log = logging.getLogger("skillreg.installer")

MANIFEST_SCHEMA = 1


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(slots=True)
class _Manifest:
    entries: Dict[str, dict] = field(default_factory=dict)
    # сколько уровней каталогов (dest и предки) создала первая установка
    created_dirs: int = 0


class Installer:
    """
    Применяет разрешённую версию к каталогу назначения.

    Layout::

        <destination>/
            skillreg.manifest.json     # one entry per namespace/name
            <namespace>/<name>/<entry> # package content

    Content is staged inside the destination and renamed into place; the
    manifest is rewritten atomically afterwards. Until the manifest is written
    every failure restores the previous package directory, so no record ever
    points at half-written content.
    Directories the first install had to create are recorded in the manifest
    and removed again together with the last package.
    """

    def __init__(
        self,
        *,
        resolver: Optional[Resolver] = None,
        fs: Optional[FSPolicy] = None,
        locks: Optional[DestinationLocks] = None,
        bus: Optional[EventBus] = None,
    ):
        self.resolver = resolver
        self.fs = fs
        self.locks = locks or DestinationLocks()
        self.bus = bus

    # --- manifest ---

    @staticmethod
    def manifest_path(destination: Path | str) -> Path:
        return Path(destination) / const.MANIFEST_FILE

    def _read_manifest(self, dest: Path, package: str = "-", version: Optional[str] = None) -> _Manifest:
        path = self.manifest_path(dest)
        try:
            data = read_json(str(path), self.fs, default=None)
        except ValueError as exc:
            raise IOFailure(package, str(dest), version=version, detail=f"corrupt manifest {path.name}: {exc}") from exc
        if data is None:
            return _Manifest()
        packages = data.get("packages") if isinstance(data, dict) else None
        if not isinstance(packages, dict):
            raise IOFailure(package, str(dest), version=version, detail=f"corrupt manifest {path.name}: no 'packages' map")
        created = data.get("createdDirs", 0)
        return _Manifest(dict(packages), created if isinstance(created, int) and created > 0 else 0)

    def _write_manifest(self, dest: Path, manifest: _Manifest) -> None:
        path = self.manifest_path(dest)
        if manifest.entries:
            doc: Dict[str, object] = {"schema": MANIFEST_SCHEMA, "packages": manifest.entries}
            if manifest.created_dirs:
                doc["createdDirs"] = manifest.created_dirs
            write_json_atomic(str(path), doc, self.fs)
        elif path.exists():
            remove_tree(str(path), self.fs)

    @staticmethod
    def _missing_levels(dest: Path) -> int:
        """Сколько каталогов (dest и его предков) придётся создать."""
        levels = 0
        p = dest
        while not p.exists() and p != p.parent:
            levels += 1
            p = p.parent
        return levels

    @staticmethod
    def _remove_created(dest: Path, levels: int) -> None:
        # удаляем только то, что создала установка, и только если пусто
        if levels > 0:
            remove_empty_parents(dest, dest.parents[levels - 1])

    def _record(self, dest: Path, entry: dict) -> InstalledPackage:
        try:
            rec = InstalledPackage.from_entry(entry)
        except (KeyError, TypeError, InvalidInputError) as exc:
            raise IOFailure(str(entry.get("name", "-")), str(dest), detail=f"corrupt manifest entry: {exc}") from exc
        rel = rec.installed_path or f"{rec.id.namespace}/{rec.id.name}"
        return replace(rec, installed_path=str((dest / rel).resolve()))

    @staticmethod
    def _package_dir(dest: Path, pkg_id: PackageId) -> Path:
        return dest / pkg_id.namespace / pkg_id.name

    def installed(self, destination: Path | str) -> list[InstalledPackage]:
        dest = Path(destination).expanduser().resolve()
        entries = self._read_manifest(dest).entries
        return sorted((self._record(dest, e) for e in entries.values()), key=lambda r: r.id)

    def get_installed(self, pkg_id: PackageId, destination: Path | str) -> Optional[InstalledPackage]:
        dest = Path(destination).expanduser().resolve()
        entry = self._read_manifest(dest, str(pkg_id)).entries.get(str(pkg_id))
        return self._record(dest, entry) if entry is not None else None

    # --- content ---

    def _write_content(self, staged: Path, pv: PackageVersion) -> None:
        entry = pv.entry
        if Path(entry).name != entry or entry in (".", ".."):
            raise IOFailure(str(pv.id), str(staged), version=str(pv.version), detail=f"unsafe entry file name {entry!r}")
        staged.mkdir(parents=True)
        (staged / entry).write_bytes(pv.content)

    def _cleanup(self, path: Optional[Path]) -> None:
        if path is None or not path.exists():
            return
        try:
            remove_tree(str(path), self.fs)
        except OSError:
            _log.warning("installer.cleanup_failed", exc_info=True, extra={"extra": {"path": str(path)}})

    # --- operations ---

    def install(self, pv: PackageVersion, destination: Path | str, *, cancel: Optional[CancelToken] = None) -> InstalledPackage:
        dest = Path(destination).expanduser().resolve()
        if self.fs is not None:
            self.fs.require_write(str(dest))
        with self.locks.hold(dest, package=str(pv.id)):
            previous = self.get_installed(pv.id, dest)
            rec = self._install_locked(pv, dest, cancel)
        emit(
            self.bus,
            "package.installed",
            {
                "package": str(pv.id),
                "version": str(pv.version),
                "previous": str(previous.version) if previous else None,
                "destination": str(dest),
            },
            "pkg.installer",
        )
        return rec

    def _install_locked(self, pv: PackageVersion, dest: Path, cancel: Optional[CancelToken]) -> InstalledPackage:
        pkg, ver = str(pv.id), str(pv.version)
        target = self._package_dir(dest, pv.id)
        created_levels = self._missing_levels(dest)
        staging: Optional[Path] = None
        backup: Optional[Path] = None
        swapped = False
        ns_created = not target.parent.exists()
        try:
            manifest = self._read_manifest(dest, pkg, ver)
            if created_levels:
                manifest.created_dirs = created_levels
            dest.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=const.STAGING_PREFIX, dir=str(dest)))
            staged = staging / "pkg"
            self._write_content(staged, pv)

            # после rename отмена уже невозможна
            if cancel is not None and cancel.cancelled:
                raise InstallCancelledError(pkg, ver, str(dest))

            target.parent.mkdir(parents=True, exist_ok=True)
            if target.exists() or target.is_symlink():
                backup = staging / "previous"
                os.replace(target, backup)
            os.replace(staged, target)
            swapped = True

            rec = InstalledPackage(id=pv.id, version=pv.version, installed_path=str(target), installed_at=_now_iso())
            manifest.entries[pkg] = {**rec.to_entry(), "path": f"{pv.id.namespace}/{pv.id.name}"}
            self._write_manifest(dest, manifest)
        except BaseException as exc:
            self._rollback(dest, target, backup, swapped, ns_created)
            self._cleanup(staging)
            staging = None
            self._remove_created(dest, created_levels)
            _log.info("install.failed", extra={"extra": {"package": pkg, "version": ver, "destination": str(dest), "error": str(exc)}})
            if isinstance(exc, OSError) and not isinstance(exc, RegistryError):
                raise IOFailure(pkg, str(dest), version=ver, detail=str(exc)) from exc
            raise
        finally:
            self._cleanup(staging)
        return rec

    def _rollback(self, dest: Path, target: Path, backup: Optional[Path], swapped: bool, ns_created: bool) -> None:
        try:
            if swapped and (target.exists() or target.is_symlink()):
                remove_tree(str(target), self.fs)
            if backup is not None and backup.exists():
                os.replace(backup, target)
            elif ns_created:
                remove_empty_parents(target.parent, dest)
        except OSError:
            _log.error("install.rollback_failed", exc_info=True, extra={"extra": {"target": str(target)}})

    def uninstall(
        self,
        pkg_id: PackageId,
        destination: Path | str,
        constraint: VersionConstraint | str | None = None,
    ) -> InstalledPackage:
        """Remove a package; with ``constraint`` only when the installed version matches it."""
        c = parse_constraint(constraint) if constraint is not None else None
        dest = Path(destination).expanduser().resolve()
        if self.fs is not None:
            self.fs.require_write(str(dest))
        with self.locks.hold(dest, package=str(pkg_id)):
            manifest = self._read_manifest(dest, str(pkg_id))
            entry = manifest.entries.get(str(pkg_id))
            if entry is None:
                raise NotInstalledError(str(pkg_id), str(dest))
            rec = self._record(dest, entry)
            if c is not None and not c.matches(rec.version):
                raise NotInstalledError(str(pkg_id), str(dest), detail=f"installed {rec.version} does not match '{c}'")
            del manifest.entries[str(pkg_id)]
            target = self._package_dir(dest, pkg_id)
            trash: Optional[Path] = None
            try:
                if target.exists() or target.is_symlink():
                    trash = Path(tempfile.mkdtemp(prefix=const.STAGING_PREFIX, dir=str(dest)))
                    os.replace(target, trash / "pkg")
                self._write_manifest(dest, manifest)
            except BaseException as exc:
                if trash is not None and (trash / "pkg").exists():
                    os.replace(trash / "pkg", target)
                self._cleanup(trash)
                if isinstance(exc, OSError) and not isinstance(exc, RegistryError):
                    raise IOFailure(str(pkg_id), str(dest), version=str(rec.version), detail=str(exc)) from exc
                raise
            self._cleanup(trash)
            remove_empty_parents(target.parent, dest)
            if not manifest.entries:
                self._remove_created(dest, manifest.created_dirs)
        emit(self.bus, "package.uninstalled", {"package": str(pkg_id), "version": str(rec.version), "destination": str(dest)}, "pkg.installer")
        return rec

    def upgrade(
        self,
        pkg_id: PackageId,
        constraint: VersionConstraint | str | None,
        destination: Path | str,
        *,
        cancel: Optional[CancelToken] = None,
    ) -> InstalledPackage:
        """Resolve and install; a no-op when the resolved version is already installed."""
        if self.resolver is None:
            raise RuntimeError("Installer was built without a resolver; upgrade needs one")
        c = parse_constraint(constraint)
        dest = Path(destination).expanduser().resolve()
        if self.fs is not None:
            self.fs.require_write(str(dest))
        with self.locks.hold(dest, package=str(pkg_id)):
            current = self.get_installed(pkg_id, dest)
            if current is None:
                raise NotInstalledError(str(pkg_id), str(dest))
            pv = self.resolver.resolve(pkg_id, c)
            if pv.version == current.version:
                _log.info("upgrade.noop", extra={"extra": {"package": str(pkg_id), "version": str(current.version)}})
                return current
            rec = self._install_locked(pv, dest, cancel)
        emit(
            self.bus,
            "package.upgraded",
            {"package": str(pkg_id), "from": str(current.version), "to": str(rec.version), "destination": str(dest)},
            "pkg.installer",
        )
        return rec
