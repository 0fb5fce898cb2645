from .semver import SemVer, compare
from .constraint import VersionConstraint, Comparator, parse_constraint
from .events import Event
from .types import PackageId, PackageRef, PackageVersion, VersionInfo, InstalledPackage

__all__ = [
    "Event",
    "SemVer",
    "compare",
    "VersionConstraint",
    "Comparator",
    "parse_constraint",
    "PackageId",
    "PackageRef",
    "PackageVersion",
    "VersionInfo",
    "InstalledPackage",
]
