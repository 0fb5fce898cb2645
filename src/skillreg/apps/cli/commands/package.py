# src/skillreg/apps/cli/commands/package.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich import print

from skillreg.apps.cli.errors import run_safe
from skillreg.services.context import get_ctx

app = typer.Typer(help="Установка пакетов в локальный каталог")

_DEST_HELP = "Каталог назначения (по умолчанию SKILLREG_DEST или ./.skills)"


@app.command("install")
@run_safe
def install(
    ref: str = typer.Argument(..., help="namespace/name[@version-or-range]"),
    dest: Optional[Path] = typer.Option(None, "--dest", "-d", help=_DEST_HELP),
):
    rec = get_ctx().manager.install(ref, dest)
    print(f"[green]installed[/green] {rec.id}@{rec.version} -> {rec.installed_path}")


@app.command("uninstall")
@run_safe
def uninstall(
    ref: str = typer.Argument(..., help="namespace/name"),
    dest: Optional[Path] = typer.Option(None, "--dest", "-d", help=_DEST_HELP),
):
    rec = get_ctx().manager.uninstall(ref, dest)
    print(f"[green]removed[/green] {rec.id}@{rec.version}")


@app.command("upgrade")
@run_safe
def upgrade(
    ref: str = typer.Argument(..., help="namespace/name[@range]"),
    dest: Optional[Path] = typer.Option(None, "--dest", "-d", help=_DEST_HELP),
):
    """Обновить установленный пакет до лучшей версии в диапазоне (по умолчанию latest)."""
    mgr = get_ctx().manager
    before = mgr.get_installed(ref, dest)
    rec = mgr.upgrade(ref, dest)
    if before is not None and before.version == rec.version:
        typer.echo(f"{rec.id}@{rec.version} is up to date")
    else:
        print(f"[green]upgraded[/green] {rec.id} {before.version if before else '-'} -> {rec.version}")


@app.command("list")
@run_safe
def list_cmd(
    dest: Optional[Path] = typer.Option(None, "--dest", "-d", help=_DEST_HELP),
    json_output: bool = typer.Option(False, "--json", help="Вывести JSON"),
):
    """
    Установленные пакеты из манифеста каталога назначения.
    JSON-формат: {"packages": [{"name": "...", "version": "...", "installedAt": "..."}, ...]}
    """
    rows = get_ctx().manager.list_installed(dest)
    if json_output:
        typer.echo(json.dumps({"packages": [r.to_entry() for r in rows]}, ensure_ascii=False))
        return
    if not rows:
        typer.echo("Установленных пакетов нет.")
    for r in rows:
        typer.echo(f"- {r.id} (version: {r.version})")
