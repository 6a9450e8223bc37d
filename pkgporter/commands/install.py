"""Install command implementation."""

import signal
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
from pkgporter.porter import install_ported_package, preflight
from pkgporter.report import render_report
from pkgporter.system import check_system_requirements, require_root


def _terminate(signum, frame):
    raise SystemExit(128 + signum)


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option("--no-upgrade", is_flag=True, help="Skip the final apt-get update/upgrade")
@click.option("--no-recover", is_flag=True, help="Do not re-download failed packages")
@click.option(
    "--skip-root-check",
    is_flag=True,
    help="Do not insist on running as root",
)
@click.pass_context
def install(ctx, yes: bool, no_upgrade: bool, no_recover: bool, skip_root_check: bool):
    """Install the ported package and its dependencies on this host."""
    try:
        run_install(ctx, yes, no_upgrade, no_recover, skip_root_check)
    except PorterError as e:
        exit_with_error(e)


def run_install(
    ctx: click.Context, yes: bool, no_upgrade: bool, no_recover: bool, skip_root_check: bool
) -> None:
    config = load_settings(ctx)
    store = get_store(config)
    root = preflight(store)

    backend = get_backend(ctx)
    check_system_requirements(backend)
    if not skip_root_check:
        require_root()

    click.secho(f"Installing {root} from {store.root}", fg="blue")
    if not yes:
        click.confirm("Continue?", abort=True)

    start_logging(ctx, config)
    previous = signal.signal(signal.SIGTERM, _terminate)
    try:
        report = install_ported_package(
            store,
            backend,
            get_retry_policy(ctx, config),
            recover_failed=config.recover_failed and not no_recover,
            final_upgrade=config.final_upgrade and not no_upgrade,
            progress=lambda message: click.secho(message, fg="blue"),
        )
    finally:
        signal.signal(signal.SIGTERM, previous)

    click.echo("")
    click.echo(render_report(report, store))
    click.echo("")
    if report.succeeded:
        click.secho(f"🎉 {root} installed successfully!", fg="green")
        return

    click.secho(
        "⚠️  Installation finished with problems; see the report above and "
        f"{config.effective_log_file}",
        fg="yellow",
    )
    sys.exit(EXIT_INCOMPLETE)
