"""Status command implementation."""

import click

from pkgporter.commands.utils import exit_with_error, get_store, load_settings
from pkgporter.config import ConfigError
from pkgporter.report import render_status


@click.command()
@click.pass_context
def status(ctx):
    """Show what the ported package store contains."""
    try:
        config = load_settings(ctx)
    except ConfigError as e:
        exit_with_error(e)

    click.echo(render_status(get_store(config)))
