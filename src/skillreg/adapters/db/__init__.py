from .sqlite_store import SQLite
from .sqlite_package_store import SqlitePackageStore

__all__ = ["SQLite", "SqlitePackageStore"]
