"""apt/dpkg backend for Debian and Ubuntu hosts."""

import logging
import shutil
from pathlib import Path

from debian.deb822 import PkgRelation
from debian.debfile import DebFile
from debian.debian_support import Version

from pkgporter.errors import BackendError, FetchError, InstallError
from pkgporter.execution import (
    DOWNLOAD_TIMEOUT,
    INSTALL_TIMEOUT,
    CommandResult,
    run_command,
)
from pkgporter.models import Package, Tier

REQUIRED_TOOLS = ("apt-get", "apt-cache", "dpkg", "dpkg-deb", "dpkg-query")
OS_RELEASE = Path("/etc/os-release")

# dpkg states that leave a package half-done
BROKEN_STATES = {"unpacked", "half-configured", "half-installed", "triggers-awaited"}

_logging = logging.getLogger(__name__)

# apt-get prompts and debconf dialogs must never block an unattended run
_NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}


def parse_apt_cache_depends(output: str) -> list[str]:
    """Extract hard dependency names from `apt-cache depends` output.

    Only Depends and PreDepends lines count. For an alternative group
    (lines prefixed with '|') the first alternative is taken. Virtual
    packages (`<name>`) and architecture qualifiers are dropped.
    """
    names: list[str] = []
    previous_was_alternative = False
    for raw in output.splitlines()[1:]:
        line = raw.strip()
        alternative = line.startswith("|")
        line = line.lstrip("|")
        key, sep, value = line.partition(":")
        if not sep or key not in ("Depends", "PreDepends"):
            previous_was_alternative = False
            continue
        continuing = previous_was_alternative
        previous_was_alternative = alternative
        if continuing:
            continue
        name = value.strip()
        if not name or name.startswith("<"):
            continue
        name = name.split(":", 1)[0]
        if name not in names:
            names.append(name)
    return names


def relations_to_names(*fields: str) -> list[str]:
    """Dependency names from control fields, first alternative of each group."""
    names: list[str] = []
    for text in fields:
        if not text:
            continue
        for group in PkgRelation.parse_relations(text):
            if not group:
                continue
            name = group[0]["name"]
            if name not in names:
                names.append(name)
    return names


class AptBackend:
    """Drives apt-get, apt-cache and dpkg through run_command."""

    def __init__(self, codename: str | None = None, runner=run_command):
        self._codename = codename
        self._run = runner

    @property
    def codename(self) -> str:
        if self._codename is None:
            self._codename = self._detect_codename()
        return self._codename

    def _detect_codename(self) -> str:
        result = self._run(["lsb_release", "-cs"])
        if result.ok and result.stdout.strip():
            return result.stdout.strip()
        try:
            for line in OS_RELEASE.read_text(encoding="utf-8").splitlines():
                key, _, value = line.partition("=")
                if key == "VERSION_CODENAME" and value:
                    return value.strip().strip('"')
        except OSError as e:
            _logging.warning(f"Could not read {OS_RELEASE}: {e}")
        raise BackendError("could not determine the distribution codename")

    def _check(self, argv: list[str], timeout: int = INSTALL_TIMEOUT, error=BackendError) -> CommandResult:
        result = self._run(argv, timeout=timeout, env=_NONINTERACTIVE)
        if not result.ok:
            raise error(f"{' '.join(argv)} failed: {result.output or f'exit {result.returncode}'}")
        return result

    def is_available(self) -> bool:
        return all(shutil.which(tool) for tool in REQUIRED_TOOLS)

    def get_direct_dependencies(self, name: str) -> list[str]:
        result = self._run(["apt-cache", "depends", name])
        if not result.ok:
            _logging.warning(f"apt-cache depends {name} failed: {result.output}")
            return []
        return parse_apt_cache_depends(result.stdout)

    def tier_release(self, tier: Tier) -> str | None:
        if tier is Tier.PRIMARY:
            return None
        return f"{self.codename}-{tier.value}"

    def fetch_from_tier(self, name: str, tier: Tier, dest_dir: Path) -> Path:
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        before = set(dest_dir.glob(f"{name}_*.deb"))

        argv = ["apt-get"]
        release = self.tier_release(tier)
        if release:
            argv += ["-t", release]
        argv += ["download", name]

        result = self._run(argv, timeout=DOWNLOAD_TIMEOUT, cwd=dest_dir)
        if not result.ok:
            raise FetchError(f"{' '.join(argv)} failed: {result.output or f'exit {result.returncode}'}")

        candidates = set(dest_dir.glob(f"{name}_*.deb"))
        new = candidates - before or candidates
        if not new:
            raise FetchError(f"apt-get download {name} produced no artifact")
        return max(new, key=lambda p: p.stat().st_mtime)

    def read_artifact_metadata(self, path: Path) -> Package:
        try:
            control = DebFile(str(path)).debcontrol()
        except Exception as e:
            raise BackendError(f"cannot read control data from {Path(path).name}: {e}") from e

        name = control.get("Package")
        version = control.get("Version")
        if not name or not version:
            raise BackendError(f"{Path(path).name} has no Package/Version in its control file")
        depends = relations_to_names(control.get("Pre-Depends", ""), control.get("Depends", ""))
        return Package(
            name=name,
            version=version,
            path=Path(path),
            depends=tuple(d for d in depends if d != name),
            architecture=control.get("Architecture", ""),
        )

    def validate_artifact(self, path: Path) -> bool:
        return self._run(["dpkg-deb", "--info", str(path)]).ok

    def installed_version(self, name: str) -> str | None:
        result = self._run(["dpkg-query", "-W", "-f=${Status}\t${Version}", name])
        if not result.ok:
            return None
        status, _, version = result.stdout.partition("\t")
        if status.split()[-1:] != ["installed"] or not version.strip():
            return None
        return version.strip()

    def compare_versions(self, a: str, b: str) -> int:
        va, vb = Version(a), Version(b)
        return (va > vb) - (va < vb)

    def install_artifact(self, path: Path) -> None:
        self._check(["dpkg", "-i", str(path)], error=InstallError)

    def run_generic_dependency_fix(self) -> None:
        self._check(["apt-get", "install", "-f", "-y"])

    def configure_pending(self) -> None:
        self._check(["dpkg", "--configure", "-a"])

    def refresh_index(self, fix_missing: bool = False) -> None:
        argv = ["apt-get", "update"]
        if fix_missing:
            argv.append("--fix-missing")
        self._check(argv, timeout=DOWNLOAD_TIMEOUT)

    def list_broken_packages(self) -> list[str]:
        result = self._run(["dpkg-query", "-W", "-f=${Package} ${Status}\n"])
        if not result.ok:
            raise BackendError(f"dpkg-query failed: {result.output}")
        broken = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) < 4:
                continue
            name, flag, state = parts[0], parts[2], parts[3]
            if state in BROKEN_STATES or flag == "reinstreq":
                broken.append(name)
        return broken

    def upgrade_all(self) -> None:
        self._check(["apt-get", "upgrade", "-y"])

    def autoremove(self) -> None:
        self._check(["apt-get", "autoremove", "-y"])

    def clean_cache(self) -> None:
        self._check(["apt-get", "clean"])


__all__ = [
    "AptBackend",
    "parse_apt_cache_depends",
    "relations_to_names",
    "REQUIRED_TOOLS",
]
