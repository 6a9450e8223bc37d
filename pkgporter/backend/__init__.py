"""Package-manager backends.

The porter core only talks to a PackageBackend. AptBackend drives apt/dpkg on
a real host; MemoryBackend is a dict-driven stand-in for deterministic runs.
"""

from pathlib import Path
from typing import Protocol

from pkgporter.models import Package, Tier


class PackageBackend(Protocol):
    """Capabilities the resolver, fetcher, verifier and scheduler rely on."""

    def is_available(self) -> bool:
        """True when the tooling this backend drives is present."""
        ...

    def get_direct_dependencies(self, name: str) -> list[str]:
        ...

    def fetch_from_tier(self, name: str, tier: Tier, dest_dir: Path) -> Path:
        """Download name from tier into dest_dir; raises FetchError."""
        ...

    def read_artifact_metadata(self, path: Path) -> Package:
        ...

    def validate_artifact(self, path: Path) -> bool:
        ...

    def installed_version(self, name: str) -> str | None:
        ...

    def compare_versions(self, a: str, b: str) -> int:
        """Negative if a < b, zero if equal, positive if a > b."""
        ...

    def install_artifact(self, path: Path) -> None:
        """Raises InstallError when the package manager rejects the artifact."""
        ...

    def run_generic_dependency_fix(self) -> None:
        ...

    def configure_pending(self) -> None:
        ...

    def refresh_index(self, fix_missing: bool = False) -> None:
        ...

    def list_broken_packages(self) -> list[str]:
        ...

    def upgrade_all(self) -> None:
        ...

    def autoremove(self) -> None:
        ...

    def clean_cache(self) -> None:
        ...


from .apt import AptBackend  # noqa: E402
from .memory import MemoryBackend, MemoryPackage  # noqa: E402

__all__ = [
    "PackageBackend",
    "AptBackend",
    "MemoryBackend",
    "MemoryPackage",
]
