from __future__ import annotations
from typing import Protocol


class FSPolicy(Protocol):
    def require_read(self, path: str) -> None: ...
    def require_write(self, path: str) -> None: ...
