"""Version command for ibooks-notes CLI."""

from __future__ import annotations

import click

from .. import __version__


@click.command(name="version")
def version() -> None:
    """Print the version string."""

    click.echo(f"v{__version__}")


def register(cli: click.Group) -> None:
    """Register the command with the root CLI group."""

    cli.add_command(version)
