# tests/test_constraint.py
from __future__ import annotations

import pytest

from skillreg.domain import SemVer, parse_constraint
from skillreg.domain.constraint import exact
from skillreg.domain.errors import InvalidConstraintError


@pytest.mark.parametrize(
    "rng, desugared",
    [
        ("^1.2.3", ">=1.2.3 <2.0.0"),
        ("^0.2.3", ">=0.2.3 <0.3.0"),
        ("^0.0.3", ">=0.0.3 <0.0.4"),
        ("^1.2", ">=1.2.0 <2.0.0"),
        ("^0.0", ">=0.0.0 <0.1.0"),
        ("^0", ">=0.0.0 <1.0.0"),
        ("~1.2.3", ">=1.2.3 <1.3.0"),
        ("~1.2", ">=1.2.0 <1.3.0"),
        ("~1", ">=1.0.0 <2.0.0"),
        ("2.x", ">=2.0.0 <3.0.0"),
        ("1.2.*", ">=1.2.0 <1.3.0"),
        ("1", ">=1.0.0 <2.0.0"),
        ("1.2.3", "=1.2.3"),
        ("=1.2.3", "=1.2.3"),
        (">1.2", ">=1.3.0"),
        (">1", ">=2.0.0"),
        ("<=1.2", "<1.3.0"),
        ("<1.2", "<1.2.0"),
        (">= 1.0.0 < 2.0.0", ">=1.0.0 <2.0.0"),
        ("1.0.0 - 1.4", ">=1.0.0 <1.5.0"),
        ("1.0.0 - 2.3.4", ">=1.0.0 <=2.3.4"),
        ("1 || ^3.1", ">=1.0.0 <2.0.0 || >=3.1.0 <4.0.0"),
    ],
)
def test_desugaring(rng, desugared):
    assert parse_constraint(rng).describe() == desugared


@pytest.mark.parametrize("rng", [None, "", "*", "x", "latest", "  latest  "])
def test_any_aliases(rng):
    c = parse_constraint(rng)
    assert c.is_any
    assert c.matches("0.0.1")
    assert c.matches("99.0.0")
    assert not c.matches("1.0.0-rc.1")


@pytest.mark.parametrize(
    "rng",
    ["^", "1.2.3.4", ">=>1.0.0", "abc", "1.x.3", "*.1", "1.2-beta", "1.0.0 ||", "|| 1.0.0", "1.0.0-01", "~>1.0"],
)
def test_malformed_ranges(rng):
    with pytest.raises(InvalidConstraintError) as ei:
        parse_constraint(rng)
    assert ei.value.constraint == rng.strip()
    assert ei.value.exit_code == 3


def test_caret_matches():
    c = parse_constraint("^1.0.0")
    assert c.matches("1.0.0") and c.matches("1.2.0") and c.matches("1.99.99")
    assert not c.matches("2.0.0") and not c.matches("0.9.0")


def test_impossible_ranges():
    assert not parse_constraint(">*").matches("1.0.0")
    assert not parse_constraint("<*").matches("0.0.0")


def test_prerelease_excluded_unless_same_tuple_requested():
    c = parse_constraint(">=1.0.0-beta.1 <2.0.0")
    assert c.matches("1.0.0-beta.2")
    assert c.matches("1.5.0")
    # другой major.minor.patch, pre-release не подходит
    assert not c.matches("1.1.0-alpha")
    assert not parse_constraint("^1.0.0").matches("1.1.0-alpha")


def test_exact_prerelease():
    c = parse_constraint("1.2.0-rc.1")
    assert c.matches("1.2.0-rc.1")
    assert not c.matches("1.2.0-rc.2")
    assert not c.matches("1.2.0")


def test_exact_ignores_build_metadata():
    assert parse_constraint("1.0.0+build.7").matches("1.0.0+other")


def test_best_picks_highest_match():
    versions = [SemVer.parse(t) for t in ("1.0.0", "1.2.0", "1.3.0-rc.1", "2.0.0")]
    assert str(parse_constraint("^1.0.0").best(versions)) == "1.2.0"
    assert str(parse_constraint("^1.3.0-rc.0").best(versions)) == "1.3.0-rc.1"
    assert parse_constraint("3.x").best(versions) is None
    assert [str(v) for v in parse_constraint("<2").filter(versions)] == ["1.0.0", "1.2.0"]


def test_str_keeps_raw_text():
    assert str(parse_constraint("^1.0.0")) == "^1.0.0"
    assert str(parse_constraint(None)) == "*"


def test_exact_constraint_from_version():
    c = exact(SemVer.parse("1.2.0-rc.1"))
    assert c.describe() == "=1.2.0-rc.1"
    assert c.matches("1.2.0-rc.1")
    assert not c.matches("1.2.0")
