"""Data models shared by the build and install phases."""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Tier(Enum):
    PRIMARY = "primary"
    BACKPORTS = "backports"
    UPDATES = "updates"


# Fixed fetch priority.
TIER_ORDER: tuple[Tier, ...] = (Tier.PRIMARY, Tier.BACKPORTS, Tier.UPDATES)


class Decision(Enum):
    KEEP = "keep"
    PROCEED = "proceed"


class ConflictOutcome(Enum):
    KEPT = "Kept"
    UPDATED = "Updated"


@dataclass(frozen=True)
class Package:
    """One artifact's identity and declared dependencies."""

    name: str
    version: str
    path: Path | None = None
    depends: tuple[str, ...] = ()
    architecture: str = ""


_KEPT_LINE = re.compile(r"^Kept: (\S+) (\S+) \(installed\) over (\S+)$")
_UPDATED_LINE = re.compile(r"^Updated: (\S+) (\S+) -> (\S+)$")


@dataclass(frozen=True)
class ConflictRecord:
    package: str
    installed_version: str
    candidate_version: str
    outcome: ConflictOutcome

    def to_line(self) -> str:
        if self.outcome is ConflictOutcome.KEPT:
            return (
                f"Kept: {self.package} {self.installed_version} (installed) "
                f"over {self.candidate_version}"
            )
        return f"Updated: {self.package} {self.installed_version} -> {self.candidate_version}"

    @classmethod
    def from_line(cls, line: str) -> "ConflictRecord | None":
        """Parse a conflict log line; returns None for unrecognised lines."""
        line = line.strip()
        match = _KEPT_LINE.match(line)
        if match:
            return cls(match[1], match[2], match[3], ConflictOutcome.KEPT)
        match = _UPDATED_LINE.match(line)
        if match:
            return cls(match[1], match[2], match[3], ConflictOutcome.UPDATED)
        return None


@dataclass
class FetchOutcome:
    package: str
    path: Path | None = None
    tier: Tier | None = None
    errors: dict[Tier, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.path is not None


@dataclass
class ResolutionResult:
    root: str
    processed: list[str] = field(default_factory=list)
    unfetchable: list[str] = field(default_factory=list)
    fetched: list[str] = field(default_factory=list)


@dataclass
class VerificationResult:
    checked: int = 0
    corrupt: list[str] = field(default_factory=list)
    refetched: list[str] = field(default_factory=list)
    unfetchable: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.corrupt


@dataclass
class InstallationOrder:
    packages: list[str]
    cycles: list[list[str]] = field(default_factory=list)

    def position(self, name: str) -> int:
        return self.packages.index(name)

    def __iter__(self):
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)


@dataclass
class InstallReport:
    root: str
    order: list[str] = field(default_factory=list)
    attempted: list[str] = field(default_factory=list)
    installed: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    recovered: list[str] = field(default_factory=list)
    unfetchable_additions: list[str] = field(default_factory=list)
    attention: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    root_installed: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.failed and not self.unfetchable_additions and not self.attention


__all__ = [
    "Tier",
    "TIER_ORDER",
    "Decision",
    "ConflictOutcome",
    "Package",
    "ConflictRecord",
    "FetchOutcome",
    "ResolutionResult",
    "VerificationResult",
    "InstallationOrder",
    "InstallReport",
]
