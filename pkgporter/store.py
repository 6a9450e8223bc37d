"""Artifact store: the directory carried from the source host to the target.

Layout:
  <name>_<version>_<arch>.deb     one artifact per package (epoch ':' as '%3a')
  processed_dependencies.txt      names already expanded by the resolver
  unfetchable_dependencies.txt    names no fetch tier could provide
  conflict_resolution.log         Kept/Updated records, one per line
  main_package.txt                the root package name
  package_porter.log              run log

The three name/record files are append-only; nothing rewrites them except
deleting the whole store.
"""

import logging
import shutil
from pathlib import Path
from urllib.parse import unquote

from .models import ConflictRecord, Package

PROCESSED_FILE = "processed_dependencies.txt"
UNFETCHABLE_FILE = "unfetchable_dependencies.txt"
CONFLICT_LOG_FILE = "conflict_resolution.log"
MAIN_PACKAGE_FILE = "main_package.txt"
ARTIFACT_SUFFIX = ".deb"

_logging = logging.getLogger(__name__)


def artifact_filename(name: str, version: str, architecture: str = "all") -> str:
    """Canonical artifact file name, matching what `apt-get download` writes."""
    return f"{name}_{version.replace(':', '%3a')}_{architecture or 'all'}{ARTIFACT_SUFFIX}"


def parse_artifact_filename(path: Path | str) -> tuple[str, str, str]:
    """Split an artifact file name into (name, version, architecture).

    Missing parts come back as empty strings; the name is everything before
    the first underscore.
    """
    stem = Path(path).name
    if stem.endswith(ARTIFACT_SUFFIX):
        stem = stem[: -len(ARTIFACT_SUFFIX)]
    parts = stem.split("_")
    name = parts[0]
    version = unquote(parts[1]) if len(parts) > 1 else ""
    arch = parts[2] if len(parts) > 2 else ""
    return name, version, arch


class ArtifactStore:
    """State holder for artifacts and the persisted run logs."""

    def __init__(self, root: Path | str):
        self.root = Path(root)
        self._processed: set[str] | None = None
        self._unfetchable: list[str] | None = None

    def __repr__(self) -> str:
        return f"ArtifactStore({str(self.root)!r})"

    @property
    def processed_path(self) -> Path:
        return self.root / PROCESSED_FILE

    @property
    def unfetchable_path(self) -> Path:
        return self.root / UNFETCHABLE_FILE

    @property
    def conflict_log_path(self) -> Path:
        return self.root / CONFLICT_LOG_FILE

    @property
    def main_package_path(self) -> Path:
        return self.root / MAIN_PACKAGE_FILE

    def exists(self) -> bool:
        return self.root.is_dir()

    def create(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        _logging.info(f"Using artifact store {self.root}")

    def destroy(self) -> None:
        """Delete the store and every record in it."""
        if self.root.exists():
            shutil.rmtree(self.root)
        self._processed = None
        self._unfetchable = None

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def artifacts(self) -> list[Path]:
        if not self.exists():
            return []
        return sorted(
            p for p in self.root.iterdir() if p.is_file() and p.suffix == ARTIFACT_SUFFIX
        )

    def artifact_names(self) -> list[str]:
        names: list[str] = []
        for path in self.artifacts():
            name = parse_artifact_filename(path)[0]
            if name not in names:
                names.append(name)
        return names

    def find_artifact(self, name: str) -> Path | None:
        for path in self.artifacts():
            if parse_artifact_filename(path)[0] == name:
                return path
        return None

    def add_artifact(self, source: Path, package: Package | None = None, move: bool = False) -> Path:
        """Place an artifact in the store, replacing any older one of the same name.

        With package metadata the file gets its canonical name; otherwise the
        source file name is kept.
        """
        self.create()
        if package is not None:
            target = self.root / artifact_filename(
                package.name, package.version, package.architecture
            )
            name = package.name
        else:
            target = self.root / source.name
            name = parse_artifact_filename(source)[0]

        for existing in self.artifacts():
            if existing != target and parse_artifact_filename(existing)[0] == name:
                _logging.info(f"Replacing {existing.name} with {target.name}")
                existing.unlink()

        if source.resolve() != target.resolve():
            if move:
                shutil.move(str(source), str(target))
            else:
                shutil.copy2(source, target)
        return target

    def remove_artifact(self, path: Path) -> None:
        path.unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Processed set
    # ------------------------------------------------------------------

    def processed(self) -> set[str]:
        if self._processed is None:
            self._processed = set(_read_lines(self.processed_path))
        return set(self._processed)

    def is_processed(self, name: str) -> bool:
        if self._processed is None:
            self.processed()
        return name in self._processed

    def mark_processed(self, name: str) -> bool:
        """Append name to the processed set; False if it was already there."""
        if self.is_processed(name):
            return False
        _append_line(self.processed_path, name)
        self._processed.add(name)
        return True

    # ------------------------------------------------------------------
    # Unfetchable set
    # ------------------------------------------------------------------

    def unfetchable(self) -> list[str]:
        if self._unfetchable is None:
            self._unfetchable = []
            for name in _read_lines(self.unfetchable_path):
                if name not in self._unfetchable:
                    self._unfetchable.append(name)
        return list(self._unfetchable)

    def add_unfetchable(self, name: str) -> bool:
        """Record name as unfetchable; False if it was already recorded."""
        if name in self.unfetchable():
            return False
        _append_line(self.unfetchable_path, name)
        self._unfetchable.append(name)
        return True

    # ------------------------------------------------------------------
    # Conflict log
    # ------------------------------------------------------------------

    def append_conflict(self, record: ConflictRecord) -> None:
        _append_line(self.conflict_log_path, record.to_line())

    def conflict_lines(self) -> list[str]:
        return _read_lines(self.conflict_log_path)

    def conflict_records(self) -> list[ConflictRecord]:
        records = []
        for line in self.conflict_lines():
            record = ConflictRecord.from_line(line)
            if record is not None:
                records.append(record)
        return records

    # ------------------------------------------------------------------
    # Root package marker
    # ------------------------------------------------------------------

    def write_main_package(self, name: str) -> None:
        self.create()
        self.main_package_path.write_text(f"{name}\n", encoding="utf-8")

    def read_main_package(self) -> str | None:
        lines = _read_lines(self.main_package_path)
        return lines[0] if lines else None


def _read_lines(path: Path) -> list[str]:
    if not path.exists():
        return []
    return [
        line.strip()
        for line in path.read_text(encoding="utf-8").splitlines()
        if line.strip()
    ]


def _append_line(path: Path, line: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{line}\n")


__all__ = [
    "ArtifactStore",
    "artifact_filename",
    "parse_artifact_filename",
    "PROCESSED_FILE",
    "UNFETCHABLE_FILE",
    "CONFLICT_LOG_FILE",
    "MAIN_PACKAGE_FILE",
]
