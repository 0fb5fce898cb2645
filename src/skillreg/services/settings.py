# src/skillreg/services/settings.py
from __future__ import annotations
from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Optional, Dict

from skillreg.config import const


def _parse_env_file(path: str) -> Dict[str, str]:
    data: Dict[str, str] = {}
    p = Path(path)
    if not p.exists():
        return data
    for line in p.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            k, v = line.split("=", 1)
            data[k.strip()] = v.strip().strip('"').strip("'")
    return data


@dataclass(frozen=True, slots=True)
class Settings:
    base_dir: Path
    profile: str = "default"
    log_level: str = "INFO"
    default_destination: Optional[Path] = None
    lock_timeout_sec: float = const.DEFAULT_LOCK_TIMEOUT_SEC

    @staticmethod
    def from_sources(env_file: Optional[str] = ".env") -> "Settings":
        env_file_vars = _parse_env_file(env_file) if env_file else {}

        def pick_env(key: str, default: Optional[str] = None) -> str:
            return os.environ.get(key) or env_file_vars.get(key) or (default or "")

        override_base = pick_env("SKILLREG_BASE_DIR")
        if override_base:
            base = Path(override_base).expanduser().resolve()
        else:
            base = (Path.home() / ".skillreg").resolve()

        dest = pick_env("SKILLREG_DEST")
        timeout_raw = pick_env("SKILLREG_LOCK_TIMEOUT", str(const.DEFAULT_LOCK_TIMEOUT_SEC))
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ValueError(f"SKILLREG_LOCK_TIMEOUT must be a number, got {timeout_raw!r}") from None

        return Settings(
            base_dir=base,
            profile=pick_env("SKILLREG_PROFILE", "default"),
            log_level=pick_env("SKILLREG_LOG_LEVEL", "INFO"),
            default_destination=Path(dest).expanduser() if dest else None,
            lock_timeout_sec=timeout,
        )

    def destination(self) -> Path:
        """Куда ставить пакеты, если --dest не задан."""
        if self.default_destination is not None:
            return Path(self.default_destination).expanduser().resolve()
        return (Path.cwd() / const.DEFAULT_DEST_DIRNAME).resolve()

    def with_overrides(self, **kw) -> "Settings":
        # перегружать можно ТОЛЬКО безопасные поля
        safe_keys = {"base_dir", "profile", "log_level", "default_destination", "lock_timeout_sec"}
        safe = {k: v for k, v in kw.items() if k in safe_keys and v is not None}
        if "base_dir" in safe:
            safe["base_dir"] = Path(safe["base_dir"]).expanduser().resolve()
        if "default_destination" in safe:
            safe["default_destination"] = Path(safe["default_destination"]).expanduser()
        return replace(self, **safe)
