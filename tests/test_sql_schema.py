# tests/test_sql_schema.py
from __future__ import annotations
from contextlib import closing

from skillreg.adapters.db.sqlite_schema import ensure_schema
from skillreg.services.context import get_ctx


def test_sqlite_schema_tables_exist():
    sql = get_ctx().sql
    ensure_schema(sql)
    ensure_schema(sql)  # повторный вызов безопасен
    with closing(sql.connect()) as con:
        cur = con.execute("SELECT name FROM sqlite_master WHERE type='table'")
        names = {r[0] for r in cur.fetchall()}
    assert {"packages", "package_versions"} <= names
