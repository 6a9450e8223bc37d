"""Verify command implementation."""

import sys

import click

from pkgporter.commands.utils import (
    EXIT_INCOMPLETE,
    exit_with_error,
    get_backend,
    get_retry_policy,
    get_store,
    load_settings,
    start_logging,
)
from pkgporter.errors import PorterError
from pkgporter.porter import verify_store


@click.command()
@click.pass_context
def verify(ctx):
    """Check every stored artifact and re-fetch corrupt ones."""
    try:
        config = load_settings(ctx)
        start_logging(ctx, config)
        result = verify_store(get_store(config), get_backend(ctx), get_retry_policy(ctx, config))
    except PorterError as e:
        exit_with_error(e)

    click.echo(f"Checked {result.checked} artifact(s)")
    if result.clean:
        click.secho("✅ All artifacts are valid", fg="green")
        return

    for name in result.refetched:
        click.secho(f"Replaced corrupt artifact: {name}", fg="yellow")
    for name in result.unfetchable:
        click.secho(f"❌ Corrupt and could not be re-fetched: {name}", fg="red")
    if result.unfetchable:
        sys.exit(EXIT_INCOMPLETE)
