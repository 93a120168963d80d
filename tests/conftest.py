"""Shared fixtures for pfile tests."""

import pytest

from pfile.config import get_config
from pfile.services.local_store import LocalStore


@pytest.fixture
def local_store(tmp_path) -> LocalStore:
    """LocalStore over a fresh temporary directory."""
    return LocalStore(tmp_path / "data")


@pytest.fixture(autouse=True)
def clear_config_cache():
    """Configuration values are cached per process; isolate each test."""
    get_config().clear_cache()
    yield
    get_config().clear_cache()
