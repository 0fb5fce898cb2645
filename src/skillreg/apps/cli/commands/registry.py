# src/skillreg/apps/cli/commands/registry.py
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich import print

from skillreg.apps.cli.errors import run_safe
from skillreg.domain.errors import InvalidInputError, InvalidPackageSourceError
from skillreg.services.context import get_ctx

app = typer.Typer(help="Реестр пакетов: публикация и поиск версий")


def _parse_meta(items: Optional[List[str]]) -> dict[str, str]:
    meta: dict[str, str] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise InvalidInputError(f"--meta expects key=value, got {item!r}")
        meta[key.strip()] = value.strip()
    return meta


@app.command("publish")
@run_safe
def publish(
    ref: str = typer.Argument(..., help="namespace/name@version"),
    file: Path = typer.Argument(..., help="Файл контента (Markdown)"),
    meta: Optional[List[str]] = typer.Option(None, "--meta", "-m", help="Метаданные key=value (можно несколько раз)"),
    kind: Optional[str] = typer.Option(None, "--kind", help="skill | rule"),
):
    """Опубликовать одну версию пакета из файла."""
    if not file.is_file():
        raise InvalidPackageSourceError(str(file), "content file not found")
    metadata = _parse_meta(meta)
    if kind:
        metadata["kind"] = kind
    metadata.setdefault("entry", file.name)
    info = get_ctx().manager.publish(ref, file.read_bytes(), metadata)
    print(f"[green]published[/green] {info.id}@{info.version}")


@app.command("publish-dir")
@run_safe
def publish_dir(path: Path = typer.Argument(..., help="Каталог с package.yaml")):
    """Опубликовать пакет из каталога (package.yaml + SKILL.md/RULE.md)."""
    info = get_ctx().manager.publish_dir(path)
    print(f"[green]published[/green] {info.id}@{info.version}")


@app.command("import")
@run_safe
def import_tree(root: Path = typer.Argument(..., help="Корень дерева каталогов пакетов")):
    """Опубликовать все пакеты под root; уже опубликованные версии пропускаются."""
    report = get_ctx().manager.import_tree(root)
    for info in report.published:
        print(f"[green]published[/green] {info.id}@{info.version}")
    for reason in report.skipped:
        print(f"[yellow]skipped[/yellow] {reason}")
    typer.echo(f"{len(report.published)} published, {len(report.skipped)} skipped")


@app.command("packages")
@run_safe
def packages(json_output: bool = typer.Option(False, "--json", help="Вывести JSON")):
    """Список всех опубликованных пакетов."""
    names = get_ctx().manager.packages()
    if json_output:
        typer.echo(json.dumps({"packages": names}, ensure_ascii=False))
        return
    if not names:
        typer.echo("Реестр пуст.")
    for name in names:
        typer.echo(f"- {name}")


@app.command("versions")
@run_safe
def versions(
    ref: str = typer.Argument(..., help="namespace/name[@range]"),
    json_output: bool = typer.Option(False, "--json", help="Вывести JSON"),
):
    """Версии пакета по возрастанию (с диапазоном: только подходящие)."""
    infos = get_ctx().manager.versions(ref)
    if json_output:
        typer.echo(json.dumps({"versions": [i.to_dict() for i in infos]}, ensure_ascii=False))
        return
    for info in infos:
        desc = info.metadata.get("description")
        typer.echo(f"{info.version}" + (f"  {desc}" if desc else ""))


@app.command("resolve")
@run_safe
def resolve(
    ref: str = typer.Argument(..., help="namespace/name[@version-or-range]"),
    json_output: bool = typer.Option(False, "--json", help="Вывести JSON"),
):
    """Показать версию, которая будет установлена для ссылки."""
    info = get_ctx().manager.resolve(ref)
    if json_output:
        typer.echo(json.dumps(info.to_dict(), ensure_ascii=False))
        return
    typer.echo(f"{info.id}@{info.version}")
