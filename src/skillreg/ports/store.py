from __future__ import annotations
from typing import Iterable, Mapping, Optional, Protocol

from skillreg.domain import PackageId, PackageVersion, SemVer, VersionConstraint


class PackageStore(Protocol):
    """Write-once storage of package versions keyed by ``(namespace, name, version)``."""

    def publish(self, pkg_id: PackageId, version: SemVer | str, content: bytes, metadata: Optional[Mapping[str, str]] = None) -> PackageVersion: ...

    def get(self, pkg_id: PackageId, constraint: VersionConstraint | str | None = None) -> list[PackageVersion]: ...

    def list_versions(self, pkg_id: PackageId) -> Iterable[PackageVersion]: ...

    def packages(self) -> list[PackageId]: ...
