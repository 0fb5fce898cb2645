"""skillreg: registry index and installer for Markdown skill/rule packages."""

__version__ = "0.1.0"
