"""Clean command implementation."""

import click

from pkgporter.commands.utils import exit_with_error, get_store, load_settings
from pkgporter.config import ConfigError
from pkgporter.logs import reset_logging


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def clean(ctx, yes: bool):
    """Delete the store, including its processed and unfetchable records."""
    try:
        config = load_settings(ctx)
    except ConfigError as e:
        exit_with_error(e)

    store = get_store(config)
    if not store.exists():
        click.echo(f"Nothing to clean at {store.root}")
        return

    if not yes:
        click.confirm(f"Delete {store.root} and everything in it?", abort=True)

    # the log file may live in the store
    reset_logging()
    store.destroy()
    click.secho(f"Removed {store.root}", fg="green")
