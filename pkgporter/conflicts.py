"""Keep-or-install decisions against the live package database."""

import logging

from .backend import PackageBackend
from .models import ConflictOutcome, ConflictRecord, Decision
from .store import ArtifactStore

_logging = logging.getLogger(__name__)


class ConflictResolver:
    """Decide whether a candidate artifact should replace an installed package.

    A newer installed version is kept. An equal or older one is replaced.
    Each decision involving an installed package is logged to the store
    once per resolver instance.
    """

    def __init__(self, backend: PackageBackend, store: ArtifactStore):
        self.backend = backend
        self.store = store
        self.records: dict[str, ConflictRecord] = {}

    def resolve(self, name: str, candidate_version: str) -> Decision:
        installed = self.backend.installed_version(name)
        if installed is None:
            return Decision.PROCEED

        if self.backend.compare_versions(installed, candidate_version) > 0:
            outcome, decision = ConflictOutcome.KEPT, Decision.KEEP
            _logging.info(f"Keeping {name} {installed}; artifact has older {candidate_version}")
        else:
            outcome, decision = ConflictOutcome.UPDATED, Decision.PROCEED

        if name not in self.records:
            record = ConflictRecord(name, installed, candidate_version, outcome)
            self.records[name] = record
            self.store.append_conflict(record)
        return decision


__all__ = [
    "ConflictResolver",
]
