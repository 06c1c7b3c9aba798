"""
Pytest configuration and shared fixtures for OdinKit tests.
"""

import tempfile
from pathlib import Path
from typing import Dict, Generator, List, Optional, Sequence

import pytest

from odinkit.cache.store import CacheStore
from odinkit.config.inputs import Inputs
from odinkit.core.platform import HostInfo, HostOS, clear_host_cache


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that need git and network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove CI variables that would leak into reporters and loaders."""
    for name in (
        "GITHUB_ACTIONS",
        "GITHUB_OUTPUT",
        "GITHUB_STATE",
        "GITHUB_PATH",
        "RUNNER_TEMP",
        "ODINKIT_HOME",
        "ODINKIT_CACHE_DIR",
        "STATE_cache-hit",
    ):
        monkeypatch.delenv(name, raising=False)
    for name in (
        "REPOSITORY",
        "ODIN-VERSION",
        "LLVM-VERSION",
        "BUILD-TYPE",
        "CACHE",
        "WORKSPACE",
        "CACHE-DIR",
    ):
        monkeypatch.delenv(f"INPUT_{name}", raising=False)
    return monkeypatch


@pytest.fixture
def reset_host():
    """Forget the detected host before and after the test."""
    clear_host_cache()
    yield
    clear_host_cache()


@pytest.fixture
def linux_host() -> HostInfo:
    return HostInfo(HostOS.LINUX, "x64")


@pytest.fixture
def make_inputs(temp_dir):
    """Factory for Inputs rooted in the test's temporary directory."""

    def _make(**overrides) -> Inputs:
        values = dict(
            repository="https://github.com/odin-lang/Odin",
            odin_version="master",
            llvm_version="17",
            build_type="release",
            cache=True,
            workspace=temp_dir / "workspace",
            cache_dir=temp_dir / "cache",
        )
        values.update(overrides)
        return Inputs(**values)

    return _make


class MemoryCacheStore(CacheStore):
    """
    In-memory cache store.

    Restoring a key creates the checkout directory, as a real restore would.
    """

    def __init__(self, keys: Sequence[str] = (), available: bool = True):
        self.keys = set(keys)
        self.available = available
        self.restore_calls: List[str] = []
        self.saved: Dict[str, List[Path]] = {}

    def is_available(self) -> bool:
        return self.available

    async def restore(self, paths, key) -> Optional[str]:
        self.restore_calls.append(key)
        if key not in self.keys:
            return None
        for path in paths:
            Path(path).mkdir(parents=True, exist_ok=True)
        return key

    async def save(self, paths, key) -> None:
        self.saved[key] = list(paths)
        self.keys.add(key)


@pytest.fixture
def memory_store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def make_store():
    """Factory for MemoryCacheStore instances."""
    return MemoryCacheStore
