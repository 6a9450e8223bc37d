"""CLI command definitions for pkgporter."""

from pathlib import Path

import click

from pkgporter.commands.build import build
from pkgporter.commands.clean import clean
from pkgporter.commands.install import install
from pkgporter.commands.status import status
from pkgporter.commands.verify import verify


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (JSON or YAML)",
)
@click.option(
    "--store",
    "store_dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Ported package folder (default: /tmp/ubuntu_package_porter)",
)
@click.pass_context
def cli(ctx, debug: bool, config_path: Path | None, store_dir: Path | None):
    """Carry a .deb package and all of its dependencies to an offline host."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = config_path
    ctx.obj["store_dir"] = store_dir


cli.add_command(build)
cli.add_command(verify)
cli.add_command(install)
cli.add_command(status)
cli.add_command(clean)

__all__ = [
    "cli",
]


if __name__ == "__main__":
    cli()
