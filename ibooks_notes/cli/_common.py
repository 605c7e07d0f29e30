"""Shared helpers for ibooks-notes CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from ..app import AppContext, bootstrap
from ..config import ConfigError, IbooksNotesConfig, load_config
from ..library import LibraryError

CONTEXT_SETTINGS: dict[str, Any] = {"help_option_names": ["-h", "--help"]}


class IbooksNotesCliError(click.ClickException):
    """Shared Click exception wrapper for CLI failures."""


def get_app(ctx: click.Context) -> AppContext:
    """Return a cached AppContext for the current CLI invocation."""

    app: AppContext | None = ctx.obj.get("app")
    if app is not None:
        return app

    config_path_opt: Path | None = ctx.obj.get("config_path")

    try:
        app = bootstrap(config_path_opt)
    except (ConfigError, LibraryError) as exc:
        raise IbooksNotesCliError(str(exc)) from exc

    ctx.obj["app"] = app
    return app


def get_config(ctx: click.Context) -> IbooksNotesConfig:
    """Return the configuration without opening the databases."""

    app: AppContext | None = ctx.obj.get("app")
    if app is not None:
        return app.config

    try:
        return load_config(ctx.obj.get("config_path"))
    except ConfigError as exc:
        raise IbooksNotesCliError(str(exc)) from exc
