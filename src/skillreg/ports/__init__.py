from .contracts import EventBus, SQL
from .fs import FSPolicy
from .paths import PathProvider
from .store import PackageStore

__all__ = ["EventBus", "SQL", "FSPolicy", "PathProvider", "PackageStore"]
