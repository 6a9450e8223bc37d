"""Build command implementation."""

from pathlib import Path

import click

from pkgporter.commands.utils import (
    exit_with_error,
    get_backend,
    get_retry_policy,
    get_store,
    load_settings,
    start_logging,
)
from pkgporter.errors import PorterError
from pkgporter.porter import BuildResult, build_ported_package
from pkgporter.system import check_system_requirements


@click.command()
@click.argument("deb_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def build(ctx, deb_path: Path, yes: bool):
    """Collect DEB_PATH and its dependency closure into the store."""
    try:
        run_build(ctx, deb_path, yes)
    except PorterError as e:
        exit_with_error(e)


def run_build(ctx: click.Context, deb_path: Path, yes: bool) -> None:
    config = load_settings(ctx)
    backend = get_backend(ctx)
    check_system_requirements(backend)

    click.secho(f"Preparing {deb_path.name} for transfer into {config.store_dir}", fg="blue")
    if not yes:
        click.confirm("Continue?", abort=True)

    start_logging(ctx, config, create_store=True)
    store = get_store(config)
    result = build_ported_package(deb_path, store, backend, get_retry_policy(ctx, config))
    print_build_summary(result, config.store_dir)


def print_build_summary(result: BuildResult, store_dir: Path) -> None:
    resolution = result.resolution
    click.secho(
        f"✅ {result.root.name} {result.root.version}: "
        f"{len(resolution.processed)} package(s) resolved, "
        f"{len(resolution.fetched)} downloaded",
        fg="green",
    )

    verification = result.verification
    if verification.corrupt:
        click.secho(
            f"Replaced {len(verification.refetched)} of {len(verification.corrupt)} "
            "corrupt artifact(s)",
            fg="yellow",
        )

    unfetchable = resolution.unfetchable + [
        name for name in verification.unfetchable if name not in resolution.unfetchable
    ]
    if unfetchable:
        click.secho("⚠️  Could not fetch (the install will report these):", fg="yellow")
        for name in unfetchable:
            click.secho(f"   • {name}", fg="yellow")

    click.echo("")
    click.echo("Next steps:")
    click.echo(f"  1. Copy {store_dir} to the target host")
    click.echo(f"  2. Run: sudo pkgporter --store {store_dir} install")
