from __future__ import annotations
import json, os, shutil, tempfile
from pathlib import Path
from typing import Any, Optional

from skillreg.ports.fs import FSPolicy


def _require_write(path: str, fs: Optional[FSPolicy]) -> None:
    if fs is not None:
        fs.require_write(path)


def write_bytes_atomic(path: str, data: bytes, fs: Optional[FSPolicy] = None) -> None:
    _require_write(path, fs)
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=p.name + ".", dir=str(p.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, p)
    finally:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass


def write_text_atomic(path: str, data: str, fs: Optional[FSPolicy] = None, *, encoding: str = "utf-8") -> None:
    write_bytes_atomic(path, data.encode(encoding), fs)


def write_json_atomic(path: str, obj: Any, fs: Optional[FSPolicy] = None) -> None:
    write_text_atomic(path, json.dumps(obj, ensure_ascii=False, indent=2, sort_keys=True) + "\n", fs)


def read_json(path: str, fs: Optional[FSPolicy] = None, default: Any = None) -> Any:
    if fs is not None:
        fs.require_read(path)
    p = Path(path)
    if not p.exists():
        return default
    return json.loads(p.read_text(encoding="utf-8"))


def remove_tree(path: str, fs: Optional[FSPolicy] = None) -> None:
    _require_write(path, fs)
    p = Path(path)
    if p.is_dir() and not p.is_symlink():
        shutil.rmtree(p)
    elif p.exists() or p.is_symlink():
        p.unlink()


def remove_empty_parents(path: Path, stop: Path) -> None:
    """Удаляет пустые каталоги от path вверх, не поднимаясь выше stop."""
    p = Path(path)
    stop = Path(stop)
    while p != stop and stop in p.parents:
        try:
            p.rmdir()
        except OSError:
            return
        p = p.parent
