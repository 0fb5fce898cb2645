# src/skillreg/services/store/base.py
from __future__ import annotations
from typing import Callable, Iterator, Mapping, Optional

from skillreg.config import const
from skillreg.domain import PackageId, PackageVersion, SemVer


class VersionSequence:
    """Ленивая, конечная и перезапускаемая последовательность версий (по возрастанию SemVer).

    Every ``iter()`` starts over from the lowest version; nothing is loaded until
    the sequence is iterated.
    """

    __slots__ = ("id", "_loader")

    def __init__(self, pkg_id: PackageId, loader: Callable[[], Iterator[PackageVersion]]):
        self.id = pkg_id
        self._loader = loader

    def __iter__(self) -> Iterator[PackageVersion]:
        return iter(self._loader())

    def versions(self) -> list[SemVer]:
        return [pv.version for pv in self]

    def __repr__(self) -> str:
        return f"VersionSequence({self.id})"


def content_bytes(content: bytes | str, metadata: Optional[Mapping[str, str]] = None) -> bytes:
    """Контент: непрозрачные байты; строку кодируем заявленной кодировкой."""
    if isinstance(content, (bytes, bytearray, memoryview)):
        return bytes(content)
    if isinstance(content, str):
        encoding = (metadata or {}).get("encoding") or const.DEFAULT_ENCODING
        return content.encode(encoding)
    raise TypeError(f"package content must be bytes or str, got {type(content).__name__}")
