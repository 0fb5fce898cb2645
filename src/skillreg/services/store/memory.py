# src/skillreg/services/store/memory.py
from __future__ import annotations
import bisect
from threading import RLock
from typing import Dict, Iterable, List, Mapping, Optional

from skillreg.domain import PackageId, PackageVersion, SemVer, VersionConstraint, parse_constraint
from skillreg.domain.errors import DuplicateVersionError, UnknownPackageError
from skillreg.services.store.base import VersionSequence, content_bytes


class Registry:
    """In-memory package store.

    An explicit value: build one per test or per embedding application and
    hand it to :class:`~skillreg.services.resolver.Resolver`. Versions of a
    package are kept sorted by SemVer precedence and are never replaced.
    """

    def __init__(self, versions: Iterable[PackageVersion] = ()):
        self._data: Dict[PackageId, List[PackageVersion]] = {}
        self._lock = RLock()
        for pv in versions:
            self._insert(pv)

    def _insert(self, pv: PackageVersion) -> PackageVersion:
        with self._lock:
            bucket = self._data.setdefault(pv.id, [])
            i = bisect.bisect_left(bucket, pv.version, key=lambda p: p.version)
            if i < len(bucket) and bucket[i].version == pv.version:
                raise DuplicateVersionError(str(pv.id), str(pv.version), existing=str(bucket[i].version))
            bucket.insert(i, pv)
            return pv

    def publish(
        self,
        pkg_id: PackageId,
        version: SemVer | str,
        content: bytes | str,
        metadata: Optional[Mapping[str, str]] = None,
    ) -> PackageVersion:
        v = SemVer.coerce(version)
        pv = PackageVersion(id=pkg_id, version=v, content=content_bytes(content, metadata), metadata=dict(metadata or {}))
        return self._insert(pv)

    def list_versions(self, pkg_id: PackageId) -> VersionSequence:
        with self._lock:
            bucket = self._data.get(pkg_id)
            if not bucket:
                raise UnknownPackageError(str(pkg_id))
            snapshot = tuple(bucket)
        return VersionSequence(pkg_id, lambda: iter(snapshot))

    def get(self, pkg_id: PackageId, constraint: VersionConstraint | str | None = None) -> list[PackageVersion]:
        c = parse_constraint(constraint)
        return [pv for pv in self.list_versions(pkg_id) if c.matches(pv.version)]

    def packages(self) -> list[PackageId]:
        with self._lock:
            return sorted(pid for pid, bucket in self._data.items() if bucket)
