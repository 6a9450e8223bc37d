"""Tiered artifact fetch with bounded retry per tier."""

import logging
import tempfile
from pathlib import Path

from .backend import PackageBackend
from .errors import BackendError
from .models import TIER_ORDER, FetchOutcome, Tier
from .retry import RetryPolicy
from .store import ArtifactStore

_logging = logging.getLogger(__name__)


class FetchEngine:
    """Fetch a package into the store, trying each tier in turn.

    Every tier attempt is wrapped in the retry policy; a package is only
    unfetchable once all tiers have used up their budget. Recording the
    package in the unfetchable set is left to the caller.
    """

    def __init__(
        self,
        backend: PackageBackend,
        store: ArtifactStore,
        retry: RetryPolicy | None = None,
        tiers: tuple[Tier, ...] = TIER_ORDER,
    ):
        self.backend = backend
        self.store = store
        self.retry = retry or RetryPolicy()
        self.tiers = tiers

    def fetch(self, name: str) -> FetchOutcome:
        outcome = FetchOutcome(package=name)
        with tempfile.TemporaryDirectory(prefix="pkgporter-fetch-") as scratch:
            for tier in self.tiers:
                try:
                    downloaded = self.retry.run(
                        lambda: self.backend.fetch_from_tier(name, tier, Path(scratch)),
                        description=f"Fetching {name} from {tier.value}",
                    )
                except BackendError as e:
                    outcome.errors[tier] = str(e)
                    _logging.warning(f"{name}: {tier.value} exhausted ({e})")
                    continue

                outcome.path = self._store(downloaded)
                outcome.tier = tier
                _logging.info(f"Fetched {name} from {tier.value}: {outcome.path.name}")
                return outcome

        _logging.error(f"{name}: all tiers exhausted")
        return outcome

    def fetch_to(self, name: str, dest_dir: Path) -> FetchOutcome:
        """Like fetch, but leave the artifact in dest_dir instead of the store."""
        outcome = FetchOutcome(package=name)
        for tier in self.tiers:
            try:
                outcome.path = self.retry.run(
                    lambda: self.backend.fetch_from_tier(name, tier, dest_dir),
                    description=f"Fetching {name} from {tier.value}",
                )
            except BackendError as e:
                outcome.errors[tier] = str(e)
                continue
            outcome.tier = tier
            return outcome
        _logging.error(f"{name}: all tiers exhausted")
        return outcome

    def _store(self, downloaded: Path) -> Path:
        try:
            package = self.backend.read_artifact_metadata(downloaded)
        except BackendError as e:
            # keep the downloaded name; the verifier decides whether it is usable
            _logging.warning(f"Could not read metadata of {downloaded.name}: {e}")
            package = None
        return self.store.add_artifact(downloaded, package, move=True)


__all__ = [
    "FetchEngine",
]
