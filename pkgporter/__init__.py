"""Carry a Debian/Ubuntu package and its dependency closure to another host."""

__version__ = "0.1.0"

from pkgporter.config import ConfigError, PorterConfig, load_porter_config
from pkgporter.errors import (
    BackendError,
    EnvironmentCheckError,
    FetchError,
    InstallError,
    InvalidArtifactError,
    PorterError,
    RootArtifactMissingError,
    RootPackageUnknownError,
    StoreMissingError,
    StructuralError,
)
from pkgporter.logs import setup_logging
from pkgporter.models import (
    ConflictRecord,
    Decision,
    InstallReport,
    Package,
    Tier,
)
from pkgporter.porter import (
    build_ported_package,
    install_ported_package,
    verify_store,
)
from pkgporter.retry import RetryPolicy, with_retry
from pkgporter.store import ArtifactStore

__all__ = [
    "__version__",
    "ConfigError",
    "PorterConfig",
    "load_porter_config",
    "BackendError",
    "EnvironmentCheckError",
    "FetchError",
    "InstallError",
    "InvalidArtifactError",
    "PorterError",
    "RootArtifactMissingError",
    "RootPackageUnknownError",
    "StoreMissingError",
    "StructuralError",
    "setup_logging",
    "ConflictRecord",
    "Decision",
    "InstallReport",
    "Package",
    "Tier",
    "build_ported_package",
    "install_ported_package",
    "verify_store",
    "RetryPolicy",
    "with_retry",
    "ArtifactStore",
]
