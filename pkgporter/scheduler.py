"""Installation scheduler: ordered, conflict-aware install of a store."""

import logging
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from .backend import PackageBackend
from .conflicts import ConflictResolver
from .errors import BackendError, RootArtifactMissingError
from .fetcher import FetchEngine
from .graph import DependencyGraph
from .models import Decision, InstallReport, Package
from .retry import RetryPolicy
from .store import ArtifactStore
from .system import cleanup_on_failure

_logging = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


@contextmanager
def install_session(backend: PackageBackend, retry: RetryPolicy) -> Iterator[None]:
    """Run the cleanup sequence if the body exits abnormally.

    Covers exceptions, KeyboardInterrupt and SystemExit (SIGTERM is turned
    into SystemExit by the install command). The original exception is
    re-raised after cleanup.
    """
    try:
        yield
    except BaseException:
        _logging.error("Install interrupted; running cleanup")
        for problem in cleanup_on_failure(backend, retry):
            _logging.error(f"Cleanup step failed: {problem}")
        raise


class InstallationScheduler:
    def __init__(
        self,
        backend: PackageBackend,
        store: ArtifactStore,
        retry: RetryPolicy | None = None,
        *,
        fetcher: FetchEngine | None = None,
        recover_failed: bool = True,
        final_upgrade: bool = True,
        progress: ProgressCallback | None = None,
    ):
        self.backend = backend
        self.store = store
        self.retry = retry or RetryPolicy()
        self.fetcher = fetcher or FetchEngine(backend, store, self.retry)
        self.conflicts = ConflictResolver(backend, store)
        self.recover_failed = recover_failed
        self.final_upgrade = final_upgrade
        self._progress = progress or (lambda message: None)

    def _say(self, message: str) -> None:
        _logging.info(message)
        self._progress(message)

    def load_packages(self, report: InstallReport) -> dict[str, Package]:
        packages: dict[str, Package] = {}
        for path in self.store.artifacts():
            try:
                package = self.backend.read_artifact_metadata(path)
            except BackendError as e:
                _logging.error(f"Skipping unreadable artifact {path.name}: {e}")
                report.attention.append(f"unreadable artifact {path.name}: {e}")
                continue
            packages[package.name] = package
        return packages

    def install(self, root: str) -> InstallReport:
        """Install every stored artifact, dependencies first and root last.

        Individual package failures never abort the run; they are collected
        in the returned report.
        """
        report = InstallReport(root=root)
        packages = self.load_packages(report)
        if root not in packages:
            raise RootArtifactMissingError(root, self.store.root)

        graph = DependencyGraph.from_packages(packages.values())
        order = graph.topological_order()
        report.cycles = order.cycles
        report.order = [name for name in order if name != root and name in packages]

        with tempfile.TemporaryDirectory(prefix="pkgporter-install-") as scratch:
            scratch_dir = Path(scratch)
            self._dump_plan(scratch_dir, graph, report.order)

            retry_queue = self._install_in_order(report, packages)
            self._retry_failures(report, packages, retry_queue)
            self._fix_dependencies(report)
            if self.recover_failed and report.failed:
                self._recover(report, scratch_dir / "recovery")
            self._install_root(report, packages[root])

        self._sweep_broken(report)
        self._final_pass(report)
        return report

    def _dump_plan(self, scratch_dir: Path, graph: DependencyGraph, order: list[str]) -> None:
        graph_file = scratch_dir / "dependency_graph.txt"
        graph_file.write_text("".join(f"{a} {b}\n" for a, b in graph.edges()), encoding="utf-8")
        (scratch_dir / "install_order.txt").write_text(
            "".join(f"{name}\n" for name in order), encoding="utf-8"
        )
        _logging.debug(f"Installation order: {' '.join(order)}")

    def _install_in_order(self, report: InstallReport, packages: dict[str, Package]) -> list[str]:
        retry_queue: list[str] = []
        total = len(report.order)
        for position, name in enumerate(report.order, start=1):
            package = packages[name]
            if self.conflicts.resolve(name, package.version) is Decision.KEEP:
                report.kept.append(name)
                continue

            self._say(f"[{position}/{total}] Installing {name} {package.version}")
            report.attempted.append(name)
            try:
                self.backend.install_artifact(package.path)
            except BackendError as e:
                _logging.warning(f"Install of {name} failed, queued for retry: {e}")
                retry_queue.append(name)
            else:
                report.installed.append(name)
        return retry_queue

    def _retry_failures(
        self, report: InstallReport, packages: dict[str, Package], retry_queue: list[str]
    ) -> None:
        if retry_queue:
            self._say(f"Retrying {len(retry_queue)} failed package(s)")
        for name in retry_queue:
            try:
                self.backend.install_artifact(packages[name].path)
            except BackendError as e:
                _logging.error(f"Install of {name} failed again: {e}")
                report.failed.append(name)
            else:
                report.installed.append(name)

    def _fix_dependencies(self, report: InstallReport) -> None:
        self._say("Fixing broken dependencies")
        try:
            self.retry.run(self.backend.run_generic_dependency_fix, "apt-get install -f -y")
        except BackendError as e:
            report.attention.append(f"dependency fix did not complete: {e}")

    def _recover(self, report: InstallReport, recovery_dir: Path) -> None:
        self._say(f"Attempting recovery of {len(report.failed)} failed package(s)")
        for name in list(report.failed):
            outcome = self.fetcher.fetch_to(name, recovery_dir)
            if not outcome.ok:
                _logging.warning(f"No repository copy of {name} for recovery")
                report.unfetchable_additions.append(name)
                continue
            try:
                self.backend.install_artifact(outcome.path)
            except BackendError as e:
                _logging.warning(f"Recovery install of {name} failed: {e}")
                report.unfetchable_additions.append(name)
            else:
                report.failed.remove(name)
                report.recovered.append(name)
                report.installed.append(name)

    def _install_root(self, report: InstallReport, root: Package) -> None:
        if self.conflicts.resolve(root.name, root.version) is Decision.KEEP:
            report.kept.append(root.name)
            report.root_installed = True
            return

        self._say(f"Installing main package {root.name} {root.version}")
        report.attempted.append(root.name)
        try:
            self.backend.install_artifact(root.path)
        except BackendError as e:
            _logging.error(f"Main package {root.name} failed to install: {e}")
            report.failed.append(root.name)
            report.unfetchable_additions.append(root.name)
        else:
            report.installed.append(root.name)
            report.root_installed = True

    def _sweep_broken(self, report: InstallReport) -> None:
        try:
            broken = self.backend.list_broken_packages()
        except BackendError as e:
            report.attention.append(f"could not list broken packages: {e}")
            return
        if not broken:
            return

        self._say(f"Repairing broken packages: {', '.join(broken)}")
        try:
            self.retry.run(self.backend.run_generic_dependency_fix, "apt-get install -f -y")
            self.retry.run(self.backend.configure_pending, "dpkg --configure -a")
            still_broken = self.backend.list_broken_packages()
        except BackendError as e:
            report.attention.append(f"broken package repair did not complete: {e}")
            return
        if still_broken:
            report.attention.append(f"packages left broken: {', '.join(still_broken)}")

    def _final_pass(self, report: InstallReport) -> None:
        steps: list[tuple[str, Callable[[], None]]] = []
        if self.final_upgrade:
            steps += [
                ("apt-get update", self.backend.refresh_index),
                ("apt-get upgrade -y", self.backend.upgrade_all),
            ]
        steps += [
            ("apt-get autoremove -y", self.backend.autoremove),
            ("apt-get clean", self.backend.clean_cache),
        ]
        self._say("Performing final system update and cleanup")
        for label, step in steps:
            try:
                self.retry.run(step, label)
            except BackendError as e:
                report.attention.append(f"{label} failed: {e}")


__all__ = [
    "InstallationScheduler",
    "install_session",
]
