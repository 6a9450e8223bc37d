"""Dependency closure from a root package, persisted so runs can resume."""

import logging

from .backend import PackageBackend
from .fetcher import FetchEngine
from .models import ResolutionResult
from .store import ArtifactStore

_logging = logging.getLogger(__name__)


class DependencyResolver:
    """Expand the dependency graph of a root package to its fixed point.

    Uses an explicit LIFO work list, so depth is bounded by memory rather
    than the interpreter stack. The store's processed set is the visited
    set; it is persisted before a node is expanded, so a node is never
    expanded twice, even across runs.
    """

    def __init__(self, backend: PackageBackend, store: ArtifactStore, fetcher: FetchEngine):
        self.backend = backend
        self.store = store
        self.fetcher = fetcher

    def resume_seeds(self, root: str) -> list[str]:
        """Names a previous run fetched (or gave up on) but never expanded."""
        seeds: list[str] = []
        for name in self.store.artifact_names() + self.store.unfetchable():
            if name != root and name not in seeds and not self.store.is_processed(name):
                seeds.append(name)
        return seeds

    def resolve(self, root: str) -> ResolutionResult:
        result = ResolutionResult(root=root)

        seeds = self.resume_seeds(root)
        if seeds:
            _logging.info(f"Resuming with {len(seeds)} unexpanded package(s): {', '.join(seeds)}")
        work: list[tuple[str, int]] = [(name, 1) for name in reversed(seeds)]
        work.append((root, 0))
        queued = {name for name, _ in work}

        while work:
            name, depth = work.pop()
            if self.store.is_processed(name):
                continue
            self.store.mark_processed(name)
            result.processed.append(name)
            _logging.info(f"{'  ' * depth}Resolving {name}")

            for dep in self.backend.get_direct_dependencies(name):
                if dep == name or dep == root or dep in queued or self.store.is_processed(dep):
                    continue
                queued.add(dep)
                self._acquire(dep, depth + 1, result)
                work.append((dep, depth + 1))

        if result.unfetchable:
            _logging.warning(f"Unfetchable: {', '.join(result.unfetchable)}")
        _logging.info(
            f"Resolution of {root} finished: {len(result.processed)} expanded, "
            f"{len(result.fetched)} fetched, {len(result.unfetchable)} unfetchable"
        )
        return result

    def _acquire(self, name: str, depth: int, result: ResolutionResult) -> None:
        if self.store.find_artifact(name) is not None:
            _logging.debug(f"{'  ' * depth}{name} already in store")
            return
        outcome = self.fetcher.fetch(name)
        if outcome.ok:
            result.fetched.append(name)
        else:
            self.store.add_unfetchable(name)
            result.unfetchable.append(name)


__all__ = [
    "DependencyResolver",
]
