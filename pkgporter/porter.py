"""Build and install phase orchestration."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .backend import PackageBackend
from .errors import (
    BackendError,
    InvalidArtifactError,
    RootArtifactMissingError,
    RootPackageUnknownError,
    StoreMissingError,
)
from .fetcher import FetchEngine
from .models import InstallReport, Package, ResolutionResult, VerificationResult
from .resolver import DependencyResolver
from .retry import RetryPolicy
from .scheduler import InstallationScheduler, ProgressCallback, install_session
from .store import ArtifactStore
from .system import check_and_fix_package_manager
from .verifier import IntegrityVerifier

_logging = logging.getLogger(__name__)


@dataclass
class BuildResult:
    root: Package
    artifact: Path
    resolution: ResolutionResult
    verification: VerificationResult = field(default_factory=VerificationResult)


def build_ported_package(
    deb_path: Path,
    store: ArtifactStore,
    backend: PackageBackend,
    retry: RetryPolicy | None = None,
) -> BuildResult:
    """Copy a package into the store and collect its whole dependency closure.

    Safe to re-run on the same store: already-expanded packages are skipped,
    and an interrupted run picks up where it stopped.
    """
    deb_path = Path(deb_path)
    if not deb_path.is_file():
        raise InvalidArtifactError(f"package file not found: {deb_path}")
    if not backend.validate_artifact(deb_path):
        raise InvalidArtifactError(f"{deb_path} is not a valid package archive")
    try:
        root = backend.read_artifact_metadata(deb_path)
    except BackendError as e:
        raise InvalidArtifactError(str(e)) from e

    retry = retry or RetryPolicy()
    store.create()
    artifact = store.add_artifact(deb_path, root)
    store.write_main_package(root.name)
    _logging.info(f"Main package {root.name} {root.version} copied to {artifact}")

    fetcher = FetchEngine(backend, store, retry)
    resolution = DependencyResolver(backend, store, fetcher).resolve(root.name)
    verification = IntegrityVerifier(backend, store, fetcher).verify_all()
    return BuildResult(root=root, artifact=artifact, resolution=resolution, verification=verification)


def verify_store(
    store: ArtifactStore,
    backend: PackageBackend,
    retry: RetryPolicy | None = None,
) -> VerificationResult:
    if not store.exists():
        raise StoreMissingError(store.root)
    fetcher = FetchEngine(backend, store, retry or RetryPolicy())
    return IntegrityVerifier(backend, store, fetcher).verify_all()


def preflight(store: ArtifactStore) -> str:
    """Check the structural prerequisites of an install; returns the root name.

    Runs before anything touches the target system.
    """
    if not store.exists():
        raise StoreMissingError(store.root)
    root = store.read_main_package()
    if not root:
        raise RootPackageUnknownError(store.main_package_path)
    if store.find_artifact(root) is None:
        raise RootArtifactMissingError(root, store.root)
    return root


def install_ported_package(
    store: ArtifactStore,
    backend: PackageBackend,
    retry: RetryPolicy | None = None,
    *,
    recover_failed: bool = True,
    final_upgrade: bool = True,
    progress: ProgressCallback | None = None,
) -> InstallReport:
    """Install a transferred store on this host.

    Structural problems raise before any change; everything else ends up in
    the returned report. Packages that turned out to be unobtainable are
    appended to the store's unfetchable set.
    """
    root = preflight(store)
    retry = retry or RetryPolicy()
    fetcher = FetchEngine(backend, store, retry)

    with install_session(backend, retry):
        check_and_fix_package_manager(backend, retry)
        verification = IntegrityVerifier(backend, store, fetcher).verify_all()
        scheduler = InstallationScheduler(
            backend,
            store,
            retry,
            fetcher=fetcher,
            recover_failed=recover_failed,
            final_upgrade=final_upgrade,
            progress=progress,
        )
        report = scheduler.install(root)

    for name in verification.unfetchable:
        if name not in report.unfetchable_additions:
            report.unfetchable_additions.append(name)
    for name in report.unfetchable_additions:
        store.add_unfetchable(name)
    return report


__all__ = [
    "BuildResult",
    "build_ported_package",
    "verify_store",
    "preflight",
    "install_ported_package",
]
