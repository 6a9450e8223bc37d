"""Command execution utilities."""

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Sequence

DEFAULT_TIMEOUT = 120
DOWNLOAD_TIMEOUT = 600
INSTALL_TIMEOUT = 1800

_logging = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return (self.stdout.strip() or self.stderr.strip())


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_command(
    argv: Sequence[str],
    *,
    timeout: int = DEFAULT_TIMEOUT,
    cwd: str | os.PathLike | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run a command and capture its output.

    Never raises for a non-zero exit; callers decide what a failure means.
    A timeout or a missing executable is reported as returncode 1 with the
    reason in stderr.
    """
    argv_list = list(argv)
    _logging.debug(f"Running command: {format_argv(argv_list)}")
    try:
        proc = subprocess.run(
            argv_list,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
        )
    except subprocess.TimeoutExpired:
        _logging.error(f"Command timed out after {timeout} seconds: {format_argv(argv_list)}")
        return CommandResult(argv_list, 1, "", f"Command timed out after {timeout} seconds")
    except OSError as e:
        _logging.error(f"Command execution failed: {type(e).__name__}: {e} | Command: {format_argv(argv_list)}")
        return CommandResult(argv_list, 1, "", f"Error: {e}")

    if proc.stderr:
        _logging.debug(f"stderr: {proc.stderr.strip()}")
    return CommandResult(argv_list, proc.returncode, proc.stdout, proc.stderr)
