# src/skillreg/apps/cli/errors.py
from __future__ import annotations

import functools
import os
import traceback

import typer

from skillreg.domain.errors import EXIT_IO, RegistryError


def run_safe(func):
    """Переводит ошибки реестра в код выхода: 1 разрешение, 2 ввод-вывод, 3 неверный ввод."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except RegistryError as e:
            if os.getenv("SKILLREG_CLI_DEBUG") == "1":
                traceback.print_exc()
            typer.echo(f"error: {e}", err=True)
            raise typer.Exit(code=e.exit_code)
        except PermissionError as e:
            if os.getenv("SKILLREG_CLI_DEBUG") == "1":
                traceback.print_exc()
            typer.echo(f"error: {e}", err=True)
            raise typer.Exit(code=EXIT_IO)

    return wrapper
