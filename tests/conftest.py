"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest

from depman import CacheVerifier, GitOrigin, GitStorage, IntegrityPolicy, IntegrityStore
from depman.store import KeyedLocks

FETCH_TIME = datetime(2023, 6, 20, 6, 39, 1, tzinfo=UTC)


@pytest.fixture
def store(tmp_path: Path) -> IntegrityStore:
    """Provide a store with its own lock registry under a temporary cache root."""
    return IntegrityStore(tmp_path / "cache", locks=KeyedLocks())


@pytest.fixture
def policy() -> IntegrityPolicy:
    return IntegrityPolicy(clock=lambda: FETCH_TIME)


@pytest.fixture
def verifier(store: IntegrityStore, policy: IntegrityPolicy) -> CacheVerifier:
    return CacheVerifier(store, GitStorage(), policy=policy)


@pytest.fixture
def origin() -> GitOrigin:
    return GitOrigin(url="https://repo-a", hash="abc123", ref="refs/tags/v1.0.0")


@pytest.fixture
def make_bundle(tmp_path: Path) -> Callable[[str, dict[str, str]], Path]:
    """Materialize a bundle directory from a ``{relative path: text}`` mapping."""

    def _make(name: str, files: dict[str, str]) -> Path:
        root = tmp_path / "bundles" / name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make
