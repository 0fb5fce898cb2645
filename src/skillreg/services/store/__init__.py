from .base import VersionSequence
from .memory import Registry

__all__ = ["VersionSequence", "Registry"]
