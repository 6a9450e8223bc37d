"""Pytest fixtures and utilities for pkgporter tests."""

from pathlib import Path
from typing import Generator

import pytest

from pkgporter.backend import MemoryBackend, MemoryPackage
from pkgporter.logs import reset_logging
from pkgporter.retry import RetryPolicy
from pkgporter.store import ArtifactStore


class RecordingSleep:
    """Stand-in for time.sleep that remembers the requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path: Path) -> Generator[None, None, None]:
    """Keep user config, store overrides and log handlers out of every test."""
    monkeypatch.delenv("PKGPORTER_CONFIG", raising=False)
    monkeypatch.delenv("PKGPORTER_STORE", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    yield
    reset_logging()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def retry_policy(sleeper: RecordingSleep) -> RetryPolicy:
    """Default retry budget (5 attempts, 5s initial delay) without real waiting."""
    return RetryPolicy(max_attempts=5, initial_delay=5.0, sleep=sleeper)


@pytest.fixture
def store(tmp_path: Path) -> ArtifactStore:
    return ArtifactStore(tmp_path / "store")


@pytest.fixture
def chain_repository() -> list[MemoryPackage]:
    """foo depends on bar, which depends on baz."""
    return [
        MemoryPackage("foo", "1.0", depends=["bar"]),
        MemoryPackage("bar", "2.0", depends=["baz"]),
        MemoryPackage("baz", "3.0"),
    ]


@pytest.fixture
def memory_backend(chain_repository: list[MemoryPackage]) -> MemoryBackend:
    return MemoryBackend(chain_repository)


@pytest.fixture
def root_deb(tmp_path: Path, chain_repository: list[MemoryPackage]) -> Path:
    """The foo artifact as handed to the build phase."""
    return MemoryBackend.write_artifact(chain_repository[0], tmp_path / "incoming")


def seed_store(store: ArtifactStore, root: str, packages: list[MemoryPackage]) -> None:
    """Lay out a store as the build phase would have left it."""
    store.create()
    for package in packages:
        MemoryBackend.write_artifact(package, store.root)
    store.write_main_package(root)
