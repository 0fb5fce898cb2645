# src/skillreg/adapters/fs/package_source.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Mapping

import yaml

from skillreg.config import const
from skillreg.domain import PackageId, SemVer
from skillreg.domain.errors import InvalidInputError, InvalidPackageSourceError

# ключи package.yaml, которые не попадают в metadata
_IDENTITY_KEYS = ("namespace", "name", "version")


@dataclass(frozen=True, slots=True)
class PackageSource:
    """A package directory on disk, ready to be published."""

    id: PackageId
    version: SemVer
    content: bytes = field(repr=False)
    metadata: Mapping[str, str]
    path: str


def _content_file(pkg_dir: Path, entry: str | None) -> Path:
    candidates = [entry] if entry else list(const.ENTRY_BY_KIND.values())
    for fname in candidates:
        p = pkg_dir / fname
        if p.is_file():
            return p
    raise InvalidPackageSourceError(str(pkg_dir), f"content file not found (looked for {', '.join(candidates)})")


def read_package_dir(pkg_dir: Path | str) -> PackageSource:
    """
    Читает каталог пакета: package.yaml + файл контента.
    ``entry`` в манифесте задаёт имя файла; иначе SKILL.md, затем RULE.md.
    """
    pkg_dir = Path(pkg_dir)
    manifest = pkg_dir / const.PACKAGE_SOURCE_FILE
    if not manifest.is_file():
        raise InvalidPackageSourceError(str(pkg_dir), f"{const.PACKAGE_SOURCE_FILE} not found")
    try:
        data = yaml.safe_load(manifest.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise InvalidPackageSourceError(str(pkg_dir), f"{const.PACKAGE_SOURCE_FILE} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidPackageSourceError(str(pkg_dir), f"{const.PACKAGE_SOURCE_FILE} must be a mapping")

    missing = [k for k in _IDENTITY_KEYS if not data.get(k)]
    if missing:
        raise InvalidPackageSourceError(str(pkg_dir), f"missing required keys: {', '.join(missing)}")
    try:
        pkg_id = PackageId(str(data["namespace"]), str(data["name"]))
        version = SemVer.parse(str(data["version"]))
    except InvalidInputError as exc:
        raise InvalidPackageSourceError(str(pkg_dir), str(exc)) from exc

    metadata = {str(k): str(v) for k, v in data.items() if k not in _IDENTITY_KEYS and v is not None}
    content_path = _content_file(pkg_dir, metadata.get("entry"))
    metadata.setdefault("entry", content_path.name)
    return PackageSource(
        id=pkg_id,
        version=version,
        content=content_path.read_bytes(),
        metadata=metadata,
        path=str(pkg_dir.resolve()),
    )


def iter_package_dirs(root: Path | str) -> Iterator[Path]:
    """Каталоги с package.yaml под root (включая сам root), в стабильном порядке."""
    root = Path(root)
    if not root.is_dir():
        raise InvalidPackageSourceError(str(root), "not a directory")
    for manifest in sorted(root.rglob(const.PACKAGE_SOURCE_FILE)):
        if any(part.startswith(".") for part in manifest.relative_to(root).parts[:-1]):
            continue
        yield manifest.parent
