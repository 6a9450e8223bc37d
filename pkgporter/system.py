"""Host checks and package-manager health."""

import logging
import os
import shutil

from .backend import PackageBackend
from .backend.apt import REQUIRED_TOOLS
from .errors import BackendError, EnvironmentCheckError
from .retry import RetryPolicy

_logging = logging.getLogger(__name__)


def check_system_requirements(backend: PackageBackend, tools: tuple[str, ...] = REQUIRED_TOOLS) -> None:
    if backend.is_available():
        return
    missing = [tool for tool in tools if shutil.which(tool) is None]
    detail = ", ".join(missing) if missing else "package manager tooling"
    raise EnvironmentCheckError(f"required tools not found on PATH: {detail}")


def require_root() -> None:
    if os.geteuid() != 0:
        raise EnvironmentCheckError(
            "the install phase changes the package database and must run as root "
            "(try: sudo pkgporter install)"
        )


def check_and_fix_package_manager(backend: PackageBackend, retry: RetryPolicy) -> bool:
    """Finish interrupted dpkg work before installing anything.

    Returns True when the package manager was healthy. Otherwise runs the
    repair sequence (index refresh with --fix-missing, configure, fix) and
    returns False; a repair step that exhausts its retries propagates.
    """
    try:
        backend.configure_pending()
        _logging.info("Package manager is in a good state")
        return True
    except BackendError as e:
        _logging.warning(f"Package manager is in an inconsistent state: {e}")

    retry.run(lambda: backend.refresh_index(fix_missing=True), "apt-get update --fix-missing")
    retry.run(backend.configure_pending, "dpkg --configure -a")
    retry.run(backend.run_generic_dependency_fix, "apt-get install -f -y")
    _logging.info("Package manager repaired")
    return False


def cleanup_on_failure(backend: PackageBackend, retry: RetryPolicy) -> list[str]:
    """Best-effort repair after an aborted install.

    Every step runs even if an earlier one fails; the failures are returned
    so the caller can report them.
    """
    _logging.warning("Cleaning up partial installations")
    steps = (
        ("apt-get install -f -y", backend.run_generic_dependency_fix),
        ("dpkg --configure -a", backend.configure_pending),
        ("apt-get autoremove -y", backend.autoremove),
    )
    problems: list[str] = []
    for label, step in steps:
        try:
            retry.run(step, label)
        except BackendError as e:
            problems.append(f"{label}: {e}")
    return problems


__all__ = [
    "check_system_requirements",
    "require_root",
    "check_and_fix_package_manager",
    "cleanup_on_failure",
]
