"""Integrity verification of stored artifacts."""

import logging

from .backend import PackageBackend
from .fetcher import FetchEngine
from .models import VerificationResult
from .store import ArtifactStore, parse_artifact_filename

_logging = logging.getLogger(__name__)


class IntegrityVerifier:
    def __init__(self, backend: PackageBackend, store: ArtifactStore, fetcher: FetchEngine):
        self.backend = backend
        self.store = store
        self.fetcher = fetcher

    def verify_all(self) -> VerificationResult:
        """Validate every artifact; corrupt ones get exactly one re-fetch cycle."""
        result = VerificationResult()
        for path in self.store.artifacts():
            result.checked += 1
            if self.backend.validate_artifact(path):
                continue

            name = parse_artifact_filename(path)[0]
            _logging.warning(f"Corrupt artifact {path.name}; re-fetching {name}")
            result.corrupt.append(name)
            self.store.remove_artifact(path)

            outcome = self.fetcher.fetch(name)
            if outcome.ok and self.backend.validate_artifact(outcome.path):
                result.refetched.append(name)
                continue

            if outcome.ok:
                _logging.error(f"Re-fetched {outcome.path.name} is corrupt as well")
                self.store.remove_artifact(outcome.path)
            if self.store.add_unfetchable(name):
                result.unfetchable.append(name)

        _logging.info(
            f"Verified {result.checked} artifact(s): {len(result.corrupt)} corrupt, "
            f"{len(result.refetched)} replaced"
        )
        return result


__all__ = [
    "IntegrityVerifier",
]
