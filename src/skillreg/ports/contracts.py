from __future__ import annotations
import sqlite3
from typing import Any, Callable, Protocol

from skillreg.domain.events import Event


class EventBus(Protocol):
    def publish(self, event: Event) -> None: ...
    def subscribe(self, type_prefix: str, handler: Callable[[Event], Any]) -> None: ...


class SQL(Protocol):
    def connect(self) -> sqlite3.Connection: ...
