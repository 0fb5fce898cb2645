# src/skillreg/domain/constraint.py
"""Version range predicates.

Grammar (npm-style)::

    range-set := range ( "||" range )*
    range     := hyphen | simple ( " " simple )*
    hyphen    := partial " - " partial
    simple    := ( "<" | "<=" | ">" | ">=" | "=" | "~" | "^" )? partial
    partial   := xr ( "." xr ( "." xr pre? build? )? )?
    xr        := "x" | "X" | "*" | numeric

Every range desugars to a set of primitive comparators. A pre-release version
only satisfies a set when one of its comparators carries a pre-release on the
same ``major.minor.patch``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from skillreg.domain.errors import InvalidConstraintError
from skillreg.domain.semver import SemVer, compare, _parse_prerelease

ANY_ALIASES = frozenset({"", "*", "x", "X", "latest"})

_XR = r"[xX*]|0|[1-9][0-9]*"
_PARTIAL_RE = re.compile(
    rf"^(?P<major>{_XR})"
    rf"(?:\.(?P<minor>{_XR})"
    rf"(?:\.(?P<patch>{_XR})"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r")?)?$"
)
_TOKEN_RE = re.compile(r"^(?P<op><=|>=|<|>|=|~|\^)?(?P<partial>.+)$")
_HYPHEN_RE = re.compile(r"^(?P<lo>\S+)\s+-\s+(?P<hi>\S+)$")
_OP_SPACE_RE = re.compile(r"(<=|>=|<|>|=|~|\^)\s+")

_NOTHING = SemVer(0, 0, 0)


@dataclass(frozen=True, slots=True)
class Comparator:
    op: str
    version: SemVer

    def test(self, v: SemVer) -> bool:
        c = compare(v, self.version)
        if self.op == "=":
            return c == 0
        if self.op == "<":
            return c < 0
        if self.op == "<=":
            return c <= 0
        if self.op == ">":
            return c > 0
        if self.op == ">=":
            return c >= 0
        raise ValueError(f"unknown comparator op: {self.op}")

    def __str__(self) -> str:
        return f"{self.op}{self.version}"


@dataclass(frozen=True, slots=True)
class _Partial:
    major: Optional[int]
    minor: Optional[int]
    patch: Optional[int]
    prerelease: tuple = ()

    def floor(self) -> SemVer:
        return SemVer(self.major or 0, self.minor or 0, self.patch or 0, self.prerelease)


def _set_matches(cset: Tuple[Comparator, ...], v: SemVer) -> bool:
    if not all(c.test(v) for c in cset):
        return False
    if v.is_prerelease:
        return any(c.version.is_prerelease and c.version.core == v.core for c in cset)
    return True


@dataclass(frozen=True, slots=True)
class VersionConstraint:
    raw: str
    sets: Tuple[Tuple[Comparator, ...], ...]

    @property
    def is_any(self) -> bool:
        return any(len(s) == 0 for s in self.sets)

    def matches(self, version: SemVer | str) -> bool:
        v = SemVer.coerce(version)
        return any(_set_matches(s, v) for s in self.sets)

    def filter(self, versions: Iterable[SemVer]) -> List[SemVer]:
        return [v for v in versions if self.matches(v)]

    def best(self, versions: Iterable[SemVer]) -> Optional[SemVer]:
        """Highest matching version, or ``None``."""
        found: Optional[SemVer] = None
        for v in versions:
            if self.matches(v) and (found is None or found < v):
                found = v
        return found

    def describe(self) -> str:
        """Desugared form, e.g. ``>=1.2.0 <2.0.0``."""
        parts = []
        for s in self.sets:
            parts.append(" ".join(str(c) for c in s) if s else "*")
        return " || ".join(parts)

    def __str__(self) -> str:
        return self.raw if self.raw else "*"


def _num(text: Optional[str]) -> Optional[int]:
    if text is None or text in ("x", "X", "*"):
        return None
    return int(text)


def _parse_partial(text: str, raw: str) -> _Partial:
    m = _PARTIAL_RE.match(text)
    if not m:
        raise InvalidConstraintError(raw, f"cannot parse '{text}'")
    major, minor, patch = _num(m.group("major")), _num(m.group("minor")), _num(m.group("patch"))
    # после wildcard допускаются только wildcard
    if major is None and (minor is not None or patch is not None):
        raise InvalidConstraintError(raw, f"'{text}' has a number after a wildcard")
    if minor is None and patch is not None:
        raise InvalidConstraintError(raw, f"'{text}' has a number after a wildcard")
    pre = m.group("pre")
    if pre is not None:
        if patch is None:
            raise InvalidConstraintError(raw, f"'{text}' has a pre-release tag on a partial version")
        for ident in pre.split("."):
            if ident.isdigit() and len(ident) > 1 and ident.startswith("0"):
                raise InvalidConstraintError(raw, f"'{text}' has a numeric pre-release identifier with a leading zero")
    return _Partial(major, minor, patch, _parse_prerelease(pre))


def _next_major(p: _Partial) -> SemVer:
    return SemVer((p.major or 0) + 1, 0, 0)


def _next_minor(p: _Partial) -> SemVer:
    return SemVer(p.major or 0, (p.minor or 0) + 1, 0)


def _xrange(op: Optional[str], p: _Partial) -> List[Comparator]:
    if op in (None, "="):
        if p.major is None:
            return []
        if p.minor is None:
            return [Comparator(">=", p.floor()), Comparator("<", _next_major(p))]
        if p.patch is None:
            return [Comparator(">=", p.floor()), Comparator("<", _next_minor(p))]
        return [Comparator("=", p.floor())]
    if op == ">":
        if p.major is None:
            return [Comparator("<", _NOTHING)]
        if p.minor is None:
            return [Comparator(">=", _next_major(p))]
        if p.patch is None:
            return [Comparator(">=", _next_minor(p))]
        return [Comparator(">", p.floor())]
    if op == ">=":
        return [] if p.major is None else [Comparator(">=", p.floor())]
    if op == "<":
        return [Comparator("<", _NOTHING if p.major is None else p.floor())]
    if op == "<=":
        if p.major is None:
            return []
        if p.minor is None:
            return [Comparator("<", _next_major(p))]
        if p.patch is None:
            return [Comparator("<", _next_minor(p))]
        return [Comparator("<=", p.floor())]
    raise ValueError(op)


def _tilde(p: _Partial) -> List[Comparator]:
    if p.major is None:
        return []
    if p.minor is None:
        return [Comparator(">=", p.floor()), Comparator("<", _next_major(p))]
    return [Comparator(">=", p.floor()), Comparator("<", _next_minor(p))]


def _caret(p: _Partial) -> List[Comparator]:
    if p.major is None:
        return []
    lower = Comparator(">=", p.floor())
    if p.minor is None or p.major > 0:
        return [lower, Comparator("<", _next_major(p))]
    if p.patch is None or p.minor > 0:
        return [lower, Comparator("<", _next_minor(p))]
    return [lower, Comparator("<", SemVer(0, 0, p.patch + 1))]


def _hyphen(lo: _Partial, hi: _Partial) -> List[Comparator]:
    out: List[Comparator] = []
    if lo.major is not None:
        out.append(Comparator(">=", lo.floor()))
    if hi.major is not None:
        if hi.minor is None:
            out.append(Comparator("<", _next_major(hi)))
        elif hi.patch is None:
            out.append(Comparator("<", _next_minor(hi)))
        else:
            out.append(Comparator("<=", hi.floor()))
    return out


def _parse_range(part: str, raw: str) -> Tuple[Comparator, ...]:
    m = _HYPHEN_RE.match(part)
    if m:
        return tuple(_hyphen(_parse_partial(m.group("lo"), raw), _parse_partial(m.group("hi"), raw)))

    comparators: List[Comparator] = []
    for token in _OP_SPACE_RE.sub(r"\1", part).split():
        tm = _TOKEN_RE.match(token)
        if not tm:
            raise InvalidConstraintError(raw, f"cannot parse '{token}'")
        op, p = tm.group("op"), _parse_partial(tm.group("partial"), raw)
        if op == "~":
            comparators.extend(_tilde(p))
        elif op == "^":
            comparators.extend(_caret(p))
        else:
            comparators.extend(_xrange(op, p))
    return tuple(comparators)


def parse_constraint(text: "str | VersionConstraint | None") -> VersionConstraint:
    """Parse a range; ``None``, ``""``, ``*`` and ``latest`` mean any stable version.

    Raises :class:`InvalidConstraintError` for malformed input.
    """
    if isinstance(text, VersionConstraint):
        return text
    if text is None:
        return VersionConstraint(raw="", sets=((),))
    if not isinstance(text, str):
        raise InvalidConstraintError(repr(text), "expected a string")
    raw = text.strip()
    if raw in ANY_ALIASES:
        return VersionConstraint(raw=raw, sets=((),))

    sets: List[Tuple[Comparator, ...]] = []
    for part in raw.split("||"):
        part = part.strip()
        if not part:
            raise InvalidConstraintError(raw, "empty alternative in '||' list")
        if part in ANY_ALIASES:
            sets.append(())
            continue
        sets.append(_parse_range(part, raw))
    return VersionConstraint(raw=raw, sets=tuple(sets))


def exact(version: SemVer | str) -> VersionConstraint:
    v = SemVer.coerce(version)
    return VersionConstraint(raw=str(v), sets=((Comparator("=", v),),))
