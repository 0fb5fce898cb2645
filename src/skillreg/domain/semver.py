# src/skillreg/domain/semver.py
"""Strict SemVer 2.0.0 parsing and precedence.

Build metadata is kept for display but never takes part in ordering or
equality: ``1.0.0+a == 1.0.0+b``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Tuple, Union

from skillreg.domain.errors import InvalidVersionError

Identifier = Union[int, str]

_NUM = r"0|[1-9][0-9]*"
_PRE_ID = r"(?:0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"
_BUILD_ID = r"[0-9A-Za-z-]+"
_SEMVER_RE = re.compile(
    rf"^(?P<major>{_NUM})\.(?P<minor>{_NUM})\.(?P<patch>{_NUM})"
    rf"(?:-(?P<pre>{_PRE_ID}(?:\.{_PRE_ID})*))?"
    rf"(?:\+(?P<build>{_BUILD_ID}(?:\.{_BUILD_ID})*))?$"
)


def _parse_prerelease(text: str | None) -> Tuple[Identifier, ...]:
    if not text:
        return ()
    return tuple(int(p) if p.isascii() and p.isdigit() else p for p in text.split("."))


def compare_identifiers(a: Identifier, b: Identifier) -> int:
    # числовые < буквенно-цифровые
    a_num, b_num = isinstance(a, int), isinstance(b, int)
    if a_num and b_num:
        return (a > b) - (a < b)
    if a_num:
        return -1
    if b_num:
        return 1
    return (a > b) - (a < b)


def compare_prerelease(a: Tuple[Identifier, ...], b: Tuple[Identifier, ...]) -> int:
    """A release (empty tuple) ranks above any pre-release of the same core."""
    if not a and not b:
        return 0
    if not a:
        return 1
    if not b:
        return -1
    for x, y in zip(a, b):
        c = compare_identifiers(x, y)
        if c:
            return c
    return (len(a) > len(b)) - (len(a) < len(b))


def compare(a: "SemVer", b: "SemVer") -> int:
    """Return -1, 0 or 1 by SemVer precedence."""
    if a.core != b.core:
        return -1 if a.core < b.core else 1
    return compare_prerelease(a.prerelease, b.prerelease)


@total_ordering
@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: Tuple[Identifier, ...] = ()
    build: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def parse(cls, text: str) -> "SemVer":
        if not isinstance(text, str):
            raise InvalidVersionError(repr(text), "expected a string")
        raw = text.strip()
        m = _SEMVER_RE.match(raw)
        if not m:
            raise InvalidVersionError(text)
        build = tuple(m.group("build").split(".")) if m.group("build") else ()
        return cls(
            int(m.group("major")),
            int(m.group("minor")),
            int(m.group("patch")),
            _parse_prerelease(m.group("pre")),
            build,
        )

    @classmethod
    def coerce(cls, value: "SemVer | str") -> "SemVer":
        return value if isinstance(value, SemVer) else cls.parse(value)

    @property
    def core(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def precedence_key(self) -> str:
        """Canonical text without build metadata; equal keys mean equal precedence."""
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(str(p) for p in self.prerelease)
        return text

    def __str__(self) -> str:
        text = self.precedence_key()
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return compare(self, other) < 0
