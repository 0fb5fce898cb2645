# src/skillreg/adapters/db/sqlite_store.py
# соединение SQLite
from __future__ import annotations
import sqlite3
from pathlib import Path
from typing import Final

from skillreg.config import const
from skillreg.ports import SQL
from skillreg.ports.paths import PathProvider


class SQLite(SQL):
    def __init__(self, paths: PathProvider, *, db_file: str = const.DB_FILE):
        self._db_path: Final[Path] = Path(paths.state_dir()) / db_file
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        # ленивое создание файла
        with sqlite3.connect(self._db_path) as con:
            con.execute("PRAGMA journal_mode=WAL")
        con.close()

    @property
    def path(self) -> Path:
        return self._db_path

    def connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self._db_path, timeout=30.0)
        con.execute("PRAGMA foreign_keys=ON")
        return con
