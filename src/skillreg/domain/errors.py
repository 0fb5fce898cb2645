"""Registry error taxonomy shared by the store, resolver, installer and CLI."""

from __future__ import annotations

from typing import Iterable, Optional

__all__ = [
    "RegistryError",
    "ResolutionError",
    "InvalidInputError",
    "InstallerError",
    "UnknownPackageError",
    "NoMatchingVersionError",
    "InvalidConstraintError",
    "InvalidVersionError",
    "InvalidPackageRefError",
    "InvalidPackageSourceError",
    "DuplicateVersionError",
    "NotInstalledError",
    "IOFailure",
    "LockTimeoutError",
    "InstallCancelledError",
    "EXIT_OK",
    "EXIT_RESOLUTION",
    "EXIT_IO",
    "EXIT_INVALID_INPUT",
]

EXIT_OK = 0
EXIT_RESOLUTION = 1
EXIT_IO = 2
EXIT_INVALID_INPUT = 3


class RegistryError(Exception):
    """Base class; ``exit_code`` is what a CLI wrapper should exit with."""

    exit_code: int = EXIT_IO


class ResolutionError(RegistryError):
    exit_code = EXIT_RESOLUTION


class InvalidInputError(RegistryError, ValueError):
    exit_code = EXIT_INVALID_INPUT


class InstallerError(RegistryError):
    exit_code = EXIT_IO


class UnknownPackageError(ResolutionError, LookupError):
    """Raised when a package id has never been published."""

    def __init__(self, package: str, *, message: str | None = None) -> None:
        self.package = package
        super().__init__(message or f"unknown package: {package}")


class NoMatchingVersionError(ResolutionError, LookupError):
    """Raised when no published version satisfies the constraint.

    ``available`` lists every published version (ascending) so the caller can
    correct the request.
    """

    def __init__(self, package: str, constraint: str, available: Iterable[str] = ()) -> None:
        self.package = package
        self.constraint = constraint
        self.available = list(available)
        shown = ", ".join(self.available) if self.available else "none"
        super().__init__(f"no version of {package} matches '{constraint}' (available: [{shown}])")


class InvalidConstraintError(InvalidInputError):
    def __init__(self, constraint: str, reason: str = "malformed range") -> None:
        self.constraint = constraint
        self.reason = reason
        super().__init__(f"invalid version constraint '{constraint}': {reason}")


class InvalidVersionError(InvalidInputError):
    def __init__(self, version: str, reason: str = "not a semantic version") -> None:
        self.version = version
        self.reason = reason
        super().__init__(f"invalid version '{version}': {reason}")


class InvalidPackageRefError(InvalidInputError):
    def __init__(self, ref: str, reason: str = "expected namespace/name[@version-or-range]") -> None:
        self.ref = ref
        self.reason = reason
        super().__init__(f"invalid package reference '{ref}': {reason}")


class InvalidPackageSourceError(InvalidInputError):
    """Raised when a package source directory cannot be turned into a publication."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"invalid package source {path}: {reason}")


class DuplicateVersionError(InvalidInputError):
    """Raised on publish when ``(id, version)`` already exists; publication is write-once."""

    def __init__(self, package: str, version: str, *, existing: Optional[str] = None) -> None:
        self.package = package
        self.version = version
        self.existing = existing
        text = f"{package}@{version} is already published"
        if existing and existing != version:
            text += f" (as {existing})"
        super().__init__(text)


class NotInstalledError(InstallerError, LookupError):
    def __init__(self, package: str, destination: str, *, detail: str | None = None) -> None:
        self.package = package
        self.destination = destination
        self.detail = detail
        text = f"{package} is not installed in {destination}"
        super().__init__(text if detail is None else f"{text}: {detail}")


class IOFailure(InstallerError, OSError):
    """Filesystem failure during install/uninstall, raised after partial state is rolled back."""

    def __init__(self, package: str, destination: str, *, version: str | None = None, detail: str | None = None) -> None:
        self.package = package
        self.destination = destination
        self.version = version
        self.detail = detail
        what = f"{package}@{version}" if version else package
        text = f"i/o failure for {what} at {destination}"
        super().__init__(text if detail is None else f"{text}: {detail}")


class LockTimeoutError(IOFailure):
    def __init__(self, destination: str, timeout: float, *, package: str = "-") -> None:
        self.timeout = timeout
        super().__init__(package, destination, detail=f"write lock not acquired within {timeout:g}s")


class InstallCancelledError(InstallerError):
    def __init__(self, package: str, version: str, destination: str) -> None:
        self.package = package
        self.version = version
        self.destination = destination
        super().__init__(f"install of {package}@{version} into {destination} was cancelled")
