# src/skillreg/adapters/db/sqlite_schema.py
from __future__ import annotations
from contextlib import closing

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS packages (
        id INTEGER PRIMARY KEY,
        namespace TEXT NOT NULL,
        name TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (namespace, name)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS package_versions (
        id INTEGER PRIMARY KEY,
        package_id INTEGER NOT NULL REFERENCES packages(id),
        version TEXT NOT NULL,
        -- версия без build-метаданных: уникальность по старшинству SemVer
        version_key TEXT NOT NULL,
        content BLOB NOT NULL,
        metadata TEXT NOT NULL DEFAULT '{}',
        published_at REAL NOT NULL,
        UNIQUE (package_id, version_key)
    );
    """,
)


def ensure_schema(sql) -> None:
    with closing(sql.connect()) as con:
        cur = con.cursor()
        for stmt in _SCHEMA:
            cur.execute(stmt)
        con.commit()
