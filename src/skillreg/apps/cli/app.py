# src/skillreg/apps/cli/app.py
from __future__ import annotations

from typing import Optional

from dotenv import load_dotenv, find_dotenv
import typer

# загружаем .env один раз (SKILLREG_BASE_DIR, SKILLREG_DEST, ...)
load_dotenv(find_dotenv(usecwd=True))

from skillreg.apps.bootstrap import init_ctx
from skillreg.apps.cli.commands import package, registry
from skillreg.services.context import get_ctx
from skillreg.services.settings import Settings

app = typer.Typer(help="skillreg: реестр и установщик Markdown-пакетов (skills / rules)")


# -------- корневой callback (composition root) --------


@app.callback()
def main(
    base_dir: Optional[str] = typer.Option(None, "--base-dir", help="Базовый каталог (по умолчанию ~/.skillreg или SKILLREG_BASE_DIR)"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Профиль настроек"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Уровень логирования (INFO, DEBUG, ...)"),
):
    """
    Вызывается перед любыми подкомандами: строит контекст процесса.
    """
    # 1) базовые настройки (.env/ENV)
    settings = Settings.from_sources()
    # 2) CLI-переопределения только для безопасных полей
    settings = settings.with_overrides(base_dir=base_dir, profile=profile, log_level=log_level)
    # 3) единый контекст процесса
    init_ctx(settings)


@app.command("where")
def where():
    """Показать пути: базовый каталог, БД реестра, каталог установки по умолчанию."""
    ctx = get_ctx()
    typer.echo(f"base_dir: {ctx.settings.base_dir}")
    typer.echo(f"registry: {ctx.sql.path}")
    typer.echo(f"destination: {ctx.settings.destination()}")
    typer.echo(f"logs: {ctx.paths.logs_dir()}")


# -------- подкоманды --------

app.add_typer(registry.app, name="registry")
app.add_typer(package.app, name="package")

if __name__ == "__main__":
    app()
