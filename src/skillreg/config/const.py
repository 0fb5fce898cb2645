# src/skillreg/config/const.py
from __future__ import annotations

# значения по умолчанию (меняются разработчиками в коде/сборке)
DB_FILE = "registry.db"
LOG_FILE = "skillreg.log"
MANIFEST_FILE = "skillreg.manifest.json"
PACKAGE_SOURCE_FILE = "package.yaml"

DEFAULT_ENCODING = "utf-8"
DEFAULT_DEST_DIRNAME = ".skills"
DEFAULT_LOCK_TIMEOUT_SEC = 30.0

# имена файлов контента по виду пакета
ENTRY_BY_KIND = {
    "skill": "SKILL.md",
    "rule": "RULE.md",
}
DEFAULT_KIND = "skill"

STAGING_PREFIX = ".skillreg-"
