# tests/test_manager.py
from __future__ import annotations
from pathlib import Path

import pytest

from skillreg.domain.errors import (
    DuplicateVersionError,
    InvalidPackageRefError,
    InvalidPackageSourceError,
    InvalidVersionError,
    NotInstalledError,
)
from skillreg.services.context import get_ctx


def _package_dir(root: Path, name: str, version: str, *, kind: str | None = None, body: str = "# body\n", extra: str = "") -> Path:
    d = root / name.replace("/", "_") / version
    d.mkdir(parents=True)
    ns, short = name.split("/")
    lines = [f"namespace: {ns}", f"name: {short}", f'version: "{version}"', "description: test package"]
    if kind:
        lines.append(f"kind: {kind}")
    (d / "package.yaml").write_text("\n".join(lines) + "\n" + extra, encoding="utf-8")
    (d / ("RULE.md" if kind == "rule" else "SKILL.md")).write_text(body, encoding="utf-8")
    return d


@pytest.fixture
def mgr():
    return get_ctx().manager


def test_publish_and_resolve(mgr, events):
    info = mgr.publish("acme/review@1.0.0", "# v1\n", {"description": "review"})
    assert str(info.version) == "1.0.0"
    mgr.publish("acme/review@1.2.0", b"# v2\n")

    assert str(mgr.resolve("acme/review").version) == "1.2.0"
    assert str(mgr.resolve("acme/review@~1.0").version) == "1.0.0"
    assert mgr.packages() == ["acme/review"]
    assert [str(v.version) for v in mgr.versions("acme/review")] == ["1.0.0", "1.2.0"]
    assert [str(v.version) for v in mgr.versions("acme/review@<1.1")] == ["1.0.0"]
    assert [e.type for e in events][:2] == ["package.published", "package.published"]


def test_publish_needs_exact_version(mgr):
    with pytest.raises(InvalidPackageRefError):
        mgr.publish("acme/review", b"x")
    with pytest.raises(InvalidVersionError):
        mgr.publish("acme/review@^1.0.0", b"x")


def test_publish_rejects_nested_entry(mgr):
    with pytest.raises(InvalidPackageSourceError):
        mgr.publish("acme/review@1.0.0", b"x", {"entry": "sub/SKILL.md"})
    assert mgr.packages() == []


def test_publish_is_write_once(mgr):
    mgr.publish("acme/review@1.0.0", b"one")
    with pytest.raises(DuplicateVersionError):
        mgr.publish("acme/review@1.0.0", b"two")
    [v] = mgr.versions("acme/review")
    assert get_ctx().store.get(v.id, "1.0.0")[0].content == b"one"


def test_publish_dir_reads_manifest_and_content(mgr, tmp_path):
    src = _package_dir(tmp_path / "src", "acme/style", "0.3.0", kind="rule", body="no tabs\n")
    info = mgr.publish_dir(src)
    assert str(info.id) == "acme/style"
    assert info.metadata["kind"] == "rule"
    assert info.metadata["entry"] == "RULE.md"
    assert info.metadata["description"] == "test package"
    assert "version" not in info.metadata


def test_publish_dir_validation(mgr, tmp_path):
    bad = tmp_path / "bad"
    bad.mkdir()
    with pytest.raises(InvalidPackageSourceError):
        mgr.publish_dir(bad)
    (bad / "package.yaml").write_text("namespace: acme\nname: bad\n", encoding="utf-8")
    with pytest.raises(InvalidPackageSourceError) as ei:
        mgr.publish_dir(bad)
    assert "version" in str(ei.value)
    (bad / "package.yaml").write_text("namespace: acme\nname: bad\nversion: '1.0.0'\n", encoding="utf-8")
    with pytest.raises(InvalidPackageSourceError):
        mgr.publish_dir(bad)  # нет SKILL.md


def test_import_tree_skips_duplicates(mgr, tmp_path):
    root = tmp_path / "tree"
    _package_dir(root, "acme/review", "1.0.0")
    _package_dir(root, "acme/review", "1.2.0")
    _package_dir(root, "acme/lint", "0.1.0", kind="rule")
    hidden = _package_dir(root / ".cache", "acme/ghost", "1.0.0")
    assert hidden.exists()

    report = mgr.import_tree(root)
    assert sorted(f"{i.id}@{i.version}" for i in report.published) == ["acme/lint@0.1.0", "acme/review@1.0.0", "acme/review@1.2.0"]
    assert report.skipped == []

    again = mgr.import_tree(root)
    assert again.published == []
    assert len(again.skipped) == 3
    assert mgr.packages() == ["acme/lint", "acme/review"]


def test_install_uses_default_destination(mgr, dest, events):
    mgr.publish("acme/review@1.0.0", b"# v1\n")
    rec = mgr.install("acme/review")
    assert Path(rec.installed_path) == (dest / "acme" / "review").resolve()
    assert [r.id for r in mgr.list_installed()] == [rec.id]
    types = [e.type for e in events]
    assert types[-2:] == ["package.resolved", "package.installed"]
    assert events[-1].payload["previous"] is None


def test_install_upgrade_uninstall_flow(mgr, tmp_path, events):
    target = tmp_path / "elsewhere"
    mgr.publish("acme/review@1.0.0", b"# v1\n")
    mgr.publish("acme/review@1.2.0", b"# v2\n")

    mgr.install("acme/review@1.0.0", target)
    rec = mgr.upgrade("acme/review@^1.0.0", target)
    assert str(rec.version) == "1.2.0"
    assert (target / "acme" / "review" / "SKILL.md").read_bytes() == b"# v2\n"
    upgraded = [e for e in events if e.type == "package.upgraded"]
    assert upgraded[-1].payload["from"] == "1.0.0"
    assert upgraded[-1].payload["to"] == "1.2.0"

    with pytest.raises(NotInstalledError):
        mgr.uninstall("acme/review@1.0.0", target)
    gone = mgr.uninstall("acme/review@^1", target)
    assert str(gone.version) == "1.2.0"
    assert mgr.get_installed("acme/review", target) is None
    assert events[-1].type == "package.uninstalled"


def test_destination_outside_allowed_roots_is_allowed_when_explicit(mgr, tmp_path):
    mgr.publish("acme/review@1.0.0", b"x")
    target = tmp_path / "explicit"
    mgr.install("acme/review", target)
    assert target.resolve() in get_ctx().fs.roots()
