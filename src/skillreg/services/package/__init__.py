from .locks import CancelToken, DestinationLocks
from .installer import Installer
from .manager import ImportReport, PackageManager

__all__ = ["CancelToken", "DestinationLocks", "Installer", "ImportReport", "PackageManager"]
