"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from medledger.config import Settings
from medledger.engine import AccessService, JsonStateStore, MemoryStateStore, hash_content


@pytest.fixture
def h1() -> bytes:
    """Content reference of a first encrypted payload."""
    return hash_content("encrypted-scan-v1")


@pytest.fixture
def h2() -> bytes:
    """Content reference of a second encrypted payload."""
    return hash_content("encrypted-scan-v2")


@pytest.fixture
def store() -> MemoryStateStore:
    return MemoryStateStore(admin="admin")


@pytest.fixture
def svc(store: MemoryStateStore) -> AccessService:
    return AccessService(store)


@pytest.fixture
def alice_record(svc: AccessService, h1: bytes) -> str:
    """Record p1 created by alice at t=1000."""
    svc.create("p1", h1, caller="alice", now=1000)
    return "p1"


@pytest.fixture
def state_settings(tmp_path: Path) -> Settings:
    """Settings pointing at an initialised JSON state file."""
    path = tmp_path / ".medledger" / "state.json"
    JsonStateStore.create(path, admin="admin")
    return Settings(state_path=path)
