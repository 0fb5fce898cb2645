# src/skillreg/domain/types.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from time import time as _now
from types import MappingProxyType
from typing import Any, Mapping, Optional

from skillreg.config import const
from skillreg.domain.errors import InvalidPackageRefError
from skillreg.domain.semver import SemVer

_PART_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._\-]*$")


def _frozen_map(data: Optional[Mapping[str, Any]]) -> Mapping[str, str]:
    return MappingProxyType({str(k): str(v) for k, v in (data or {}).items()})


@dataclass(frozen=True, slots=True, order=True)
class PackageId:
    namespace: str
    name: str

    def __post_init__(self) -> None:
        for part in (self.namespace, self.name):
            if not isinstance(part, str) or not _PART_RE.match(part):
                raise InvalidPackageRefError(f"{self.namespace}/{self.name}", f"bad identifier part {part!r}")

    @classmethod
    def parse(cls, text: str) -> "PackageId":
        ref = PackageRef.parse(text)
        if ref.constraint is not None:
            raise InvalidPackageRefError(text, "a version is not allowed here")
        return ref.id

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True, slots=True)
class PackageRef:
    """Parsed ``namespace/name[@version-or-range]``; the range is kept as raw text."""

    id: PackageId
    constraint: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "PackageRef":
        if not isinstance(text, str) or not text.strip():
            raise InvalidPackageRefError(str(text), "empty reference")
        raw = text.strip()
        ident, sep, rng = raw.partition("@")
        if sep and not rng.strip():
            raise InvalidPackageRefError(raw, "empty version after '@'")
        parts = ident.split("/")
        if len(parts) != 2 or not all(_PART_RE.match(p) for p in parts):
            raise InvalidPackageRefError(raw)
        return cls(PackageId(parts[0], parts[1]), rng.strip() if sep else None)

    def __str__(self) -> str:
        return f"{self.id}@{self.constraint}" if self.constraint is not None else str(self.id)


@dataclass(frozen=True, slots=True)
class PackageVersion:
    id: PackageId
    version: SemVer
    content: bytes = field(repr=False)
    metadata: Mapping[str, str] = field(default_factory=dict, compare=False)
    published_at: float = field(default_factory=_now, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _frozen_map(self.metadata))

    @property
    def encoding(self) -> str:
        return self.metadata.get("encoding") or const.DEFAULT_ENCODING

    @property
    def kind(self) -> str:
        return self.metadata.get("kind") or const.DEFAULT_KIND

    @property
    def entry(self) -> str:
        """File name the content is materialized under."""
        return self.metadata.get("entry") or const.ENTRY_BY_KIND.get(self.kind, f"{self.id.name}.md")

    def text(self) -> str:
        return self.content.decode(self.encoding)

    def info(self) -> "VersionInfo":
        return VersionInfo(id=self.id, version=self.version, metadata=self.metadata, published_at=self.published_at)


@dataclass(frozen=True, slots=True)
class VersionInfo:
    id: PackageId
    version: SemVer
    metadata: Mapping[str, str] = field(default_factory=dict, compare=False)
    published_at: Optional[float] = field(default=None, compare=False)

    def to_dict(self) -> dict:
        return {
            "package": str(self.id),
            "version": str(self.version),
            "metadata": dict(self.metadata),
            "publishedAt": self.published_at,
        }


@dataclass(frozen=True, slots=True)
class InstalledPackage:
    id: PackageId
    version: SemVer
    installed_path: str
    # ISO-8601, UTC
    installed_at: str = ""

    def to_entry(self) -> dict:
        return {
            "name": str(self.id),
            "version": str(self.version),
            "installedAt": self.installed_at,
            "path": self.installed_path,
        }

    @classmethod
    def from_entry(cls, entry: Mapping[str, Any]) -> "InstalledPackage":
        return cls(
            id=PackageId.parse(str(entry["name"])),
            version=SemVer.parse(str(entry["version"])),
            installed_path=str(entry.get("path") or ""),
            installed_at=str(entry.get("installedAt") or ""),
        )
