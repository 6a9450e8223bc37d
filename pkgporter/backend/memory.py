"""In-memory backend: a scripted repository and package database.

Artifacts it writes are small JSON documents with a `.deb` suffix, so the
store, verifier and scheduler handle them exactly like real ones.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from debian.debian_support import Version

from pkgporter.errors import BackendError, FetchError, InstallError
from pkgporter.models import TIER_ORDER, Package, Tier
from pkgporter.store import artifact_filename

_MAGIC = "pkgporter-memory-artifact"

_logging = logging.getLogger(__name__)


@dataclass
class MemoryPackage:
    """A repository entry; tiers lists where it can be downloaded from."""

    name: str
    version: str
    depends: list[str] = field(default_factory=list)
    tiers: tuple[Tier, ...] = TIER_ORDER
    architecture: str = "all"


class MemoryBackend:
    """Dict-driven stand-in for apt/dpkg.

    install_failures maps a package name to the number of install attempts
    that should fail before one succeeds (a large number means always).
    transient_fetch_failures does the same for downloads, per tier.
    """

    def __init__(
        self,
        repository: dict[str, MemoryPackage] | list[MemoryPackage] | None = None,
        installed: dict[str, str] | None = None,
        install_failures: dict[str, int] | None = None,
        transient_fetch_failures: dict[str, int] | None = None,
        fix_failures: int = 0,
        enforce_dependencies: bool = True,
    ):
        if isinstance(repository, list):
            repository = {p.name: p for p in repository}
        self.repository: dict[str, MemoryPackage] = dict(repository or {})
        self.installed: dict[str, str] = dict(installed or {})
        self.install_failures = dict(install_failures or {})
        self.transient_fetch_failures = dict(transient_fetch_failures or {})
        self.fix_failures = fix_failures
        self.enforce_dependencies = enforce_dependencies
        self.broken: list[str] = []

        # call journals, inspected by tests
        self.dependency_queries: list[str] = []
        self.fetches: list[tuple[str, Tier]] = []
        self.install_attempts: list[str] = []
        self.housekeeping: list[str] = []

    def add(self, package: MemoryPackage) -> None:
        self.repository[package.name] = package

    # ------------------------------------------------------------------
    # Metadata and fetch
    # ------------------------------------------------------------------

    def is_available(self) -> bool:
        return True

    def get_direct_dependencies(self, name: str) -> list[str]:
        self.dependency_queries.append(name)
        package = self.repository.get(name)
        return list(package.depends) if package else []

    def fetch_from_tier(self, name: str, tier: Tier, dest_dir: Path) -> Path:
        self.fetches.append((name, tier))
        remaining = self.transient_fetch_failures.get(name, 0)
        if remaining > 0:
            self.transient_fetch_failures[name] = remaining - 1
            raise FetchError(f"temporary failure fetching {name}")

        package = self.repository.get(name)
        if package is None or tier not in package.tiers:
            raise FetchError(f"{name} is not available from {tier.value}")
        return self.write_artifact(package, Path(dest_dir))

    @staticmethod
    def write_artifact(package: MemoryPackage, dest_dir: Path) -> Path:
        dest_dir.mkdir(parents=True, exist_ok=True)
        path = dest_dir / artifact_filename(package.name, package.version, package.architecture)
        document = {
            "magic": _MAGIC,
            "name": package.name,
            "version": package.version,
            "depends": list(package.depends),
            "architecture": package.architecture,
        }
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    def _load(self, path: Path) -> dict:
        try:
            document = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise BackendError(f"unreadable artifact {Path(path).name}: {e}") from e
        if not isinstance(document, dict) or document.get("magic") != _MAGIC:
            raise BackendError(f"{Path(path).name} is not a valid artifact")
        return document

    def read_artifact_metadata(self, path: Path) -> Package:
        document = self._load(path)
        return Package(
            name=document["name"],
            version=document["version"],
            path=Path(path),
            depends=tuple(d for d in document.get("depends", []) if d != document["name"]),
            architecture=document.get("architecture", ""),
        )

    def validate_artifact(self, path: Path) -> bool:
        try:
            self._load(path)
        except BackendError:
            return False
        return True

    # ------------------------------------------------------------------
    # Package database
    # ------------------------------------------------------------------

    def installed_version(self, name: str) -> str | None:
        return self.installed.get(name)

    def compare_versions(self, a: str, b: str) -> int:
        va, vb = Version(a), Version(b)
        return (va > vb) - (va < vb)

    def install_artifact(self, path: Path) -> None:
        document = self._load(path)
        name = document["name"]
        self.install_attempts.append(name)

        remaining = self.install_failures.get(name, 0)
        if remaining > 0:
            self.install_failures[name] = remaining - 1
            raise InstallError(f"dpkg: error processing archive {Path(path).name}")

        if self.enforce_dependencies:
            missing = [d for d in document.get("depends", []) if d != name and d not in self.installed]
            if missing:
                raise InstallError(
                    f"dependency problems prevent configuration of {name}: "
                    f"{', '.join(missing)} not installed"
                )
        self.installed[name] = document["version"]

    def run_generic_dependency_fix(self) -> None:
        self.housekeeping.append("fix")
        if self.fix_failures > 0:
            self.fix_failures -= 1
            raise BackendError("apt-get install -f failed")
        self.broken.clear()

    def configure_pending(self) -> None:
        self.housekeeping.append("configure")

    def refresh_index(self, fix_missing: bool = False) -> None:
        self.housekeeping.append("update-fix-missing" if fix_missing else "update")

    def list_broken_packages(self) -> list[str]:
        return list(self.broken)

    def upgrade_all(self) -> None:
        self.housekeeping.append("upgrade")

    def autoremove(self) -> None:
        self.housekeeping.append("autoremove")

    def clean_cache(self) -> None:
        self.housekeeping.append("clean")


__all__ = [
    "MemoryBackend",
    "MemoryPackage",
]
