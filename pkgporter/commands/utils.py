"""Shared utility functions for commands."""

import sys
import time
from typing import NoReturn

import click

from pkgporter.backend import AptBackend, PackageBackend
from pkgporter.config import ConfigError, PorterConfig, load_porter_config
from pkgporter.errors import (
    EnvironmentCheckError,
    InvalidArtifactError,
    PorterError,
    StructuralError,
    format_error,
)
from pkgporter.logs import setup_logging
from pkgporter.retry import RetryPolicy
from pkgporter.store import ArtifactStore

EXIT_SUCCESS = 0
EXIT_INCOMPLETE = 1
EXIT_INVALID_ARGS = 2
EXIT_STRUCTURAL = 3
EXIT_CONFIG_ERROR = 4
EXIT_ENVIRONMENT = 5

# first match wins, so subclasses before PorterError
_EXIT_CODES: tuple[tuple[type[PorterError], int], ...] = (
    (ConfigError, EXIT_CONFIG_ERROR),
    (StructuralError, EXIT_STRUCTURAL),
    (EnvironmentCheckError, EXIT_ENVIRONMENT),
    (InvalidArtifactError, EXIT_INVALID_ARGS),
    (PorterError, EXIT_INCOMPLETE),
)


def exit_code_for(error: PorterError) -> int:
    for error_type, code in _EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return EXIT_INCOMPLETE


def exit_with_error(error: PorterError) -> NoReturn:
    click.echo(format_error(str(error)), err=True)
    sys.exit(exit_code_for(error))


def load_settings(ctx: click.Context) -> PorterConfig:
    """Effective configuration for this invocation (raises ConfigError)."""
    return load_porter_config(ctx.obj.get("config_path"), ctx.obj.get("store_dir"))


def start_logging(ctx: click.Context, config: PorterConfig, create_store: bool = False) -> None:
    """Log into the store, unless that would create a store that is not there yet."""
    log_path = None
    if create_store or config.log_file is not None or config.store_dir.is_dir():
        log_path = config.effective_log_file
    setup_logging(ctx.obj.get("debug", False), log_path)


def get_backend(ctx: click.Context) -> PackageBackend:
    backend = ctx.obj.get("backend")
    if backend is None:
        backend = AptBackend()
        ctx.obj["backend"] = backend
    return backend


def get_retry_policy(ctx: click.Context, config: PorterConfig) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=config.max_retries,
        initial_delay=config.retry_delay,
        sleep=ctx.obj.get("sleep", time.sleep),
    )


def get_store(config: PorterConfig) -> ArtifactStore:
    return ArtifactStore(config.store_dir)
