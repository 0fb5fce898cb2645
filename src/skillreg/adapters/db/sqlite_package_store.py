# src/skillreg/adapters/db/sqlite_package_store.py
from __future__ import annotations
import json
import sqlite3
import time
from contextlib import closing
from threading import RLock
from typing import Iterator, Mapping, Optional

from skillreg.adapters.db.sqlite_schema import ensure_schema
from skillreg.domain import PackageId, PackageVersion, SemVer, VersionConstraint, parse_constraint
from skillreg.domain.errors import DuplicateVersionError, UnknownPackageError
from skillreg.ports import SQL
from skillreg.services.store.base import VersionSequence, content_bytes


class SqlitePackageStore:
    """Долговременное хранилище пакетов на таблицах `packages`/`package_versions`.

    Publication is write-once: the ``UNIQUE(package_id, version_key)`` constraint
    rejects a second row with the same SemVer precedence even across processes.
    """

    def __init__(self, sql: SQL):
        self.sql = sql
        self._write_lock = RLock()
        ensure_schema(self.sql)

    def _package_row_id(self, con: sqlite3.Connection, pkg_id: PackageId) -> Optional[int]:
        row = con.execute(
            "SELECT p.id FROM packages p WHERE p.namespace = ? AND p.name = ? " "AND EXISTS (SELECT 1 FROM package_versions v WHERE v.package_id = p.id)",
            (pkg_id.namespace, pkg_id.name),
        ).fetchone()
        return int(row[0]) if row else None

    def publish(
        self,
        pkg_id: PackageId,
        version: SemVer | str,
        content: bytes | str,
        metadata: Optional[Mapping[str, str]] = None,
    ) -> PackageVersion:
        v = SemVer.coerce(version)
        pv = PackageVersion(id=pkg_id, version=v, content=content_bytes(content, metadata), metadata=dict(metadata or {}), published_at=time.time())
        with self._write_lock, closing(self.sql.connect()) as con:
            try:
                # транзакция: откатывается целиком, если версия уже есть
                with con:
                    con.execute(
                        "INSERT INTO packages(namespace, name) VALUES (?, ?) ON CONFLICT(namespace, name) DO NOTHING",
                        (pkg_id.namespace, pkg_id.name),
                    )
                    (row_id,) = con.execute(
                        "SELECT id FROM packages WHERE namespace = ? AND name = ?",
                        (pkg_id.namespace, pkg_id.name),
                    ).fetchone()
                    con.execute(
                        "INSERT INTO package_versions(package_id, version, version_key, content, metadata, published_at) " "VALUES (?, ?, ?, ?, ?, ?)",
                        (
                            row_id,
                            str(v),
                            v.precedence_key(),
                            sqlite3.Binary(pv.content),
                            json.dumps(dict(pv.metadata), ensure_ascii=False, sort_keys=True),
                            pv.published_at,
                        ),
                    )
            except sqlite3.IntegrityError:
                existing = con.execute(
                    "SELECT v.version FROM package_versions v JOIN packages p ON p.id = v.package_id "
                    "WHERE p.namespace = ? AND p.name = ? AND v.version_key = ?",
                    (pkg_id.namespace, pkg_id.name, v.precedence_key()),
                ).fetchone()
                raise DuplicateVersionError(str(pkg_id), str(v), existing=existing[0] if existing else None) from None
        return pv

    def list_versions(self, pkg_id: PackageId) -> VersionSequence:
        with closing(self.sql.connect()) as con:
            row_id = self._package_row_id(con, pkg_id)
        if row_id is None:
            raise UnknownPackageError(str(pkg_id))

        def _load() -> Iterator[PackageVersion]:
            with closing(self.sql.connect()) as con:
                rows = con.execute(
                    "SELECT id, version, metadata, published_at FROM package_versions WHERE package_id = ?",
                    (row_id,),
                ).fetchall()
                ordered = sorted(((SemVer.parse(ver), rid, meta, ts) for rid, ver, meta, ts in rows), key=lambda r: r[0])
                for version, rid, meta, ts in ordered:
                    # контент подгружаем по одной версии
                    (blob,) = con.execute("SELECT content FROM package_versions WHERE id = ?", (rid,)).fetchone()
                    yield PackageVersion(id=pkg_id, version=version, content=bytes(blob), metadata=json.loads(meta or "{}"), published_at=float(ts))

        return VersionSequence(pkg_id, _load)

    def get(self, pkg_id: PackageId, constraint: VersionConstraint | str | None = None) -> list[PackageVersion]:
        c = parse_constraint(constraint)
        return [pv for pv in self.list_versions(pkg_id) if c.matches(pv.version)]

    def packages(self) -> list[PackageId]:
        with closing(self.sql.connect()) as con:
            rows = con.execute(
                "SELECT p.namespace, p.name FROM packages p " "WHERE EXISTS (SELECT 1 FROM package_versions v WHERE v.package_id = p.id) " "ORDER BY p.namespace, p.name"
            ).fetchall()
        return [PackageId(ns, name) for ns, name in rows]
