"""
Pytest configuration and shared fixtures for cctoolkit tests.
"""

import pytest

from cctoolkit.core.platform import PlatformInfo, clear_platform_cache
from cctoolkit.cross.targets import TargetTriple
from cctoolkit.flags.tables import FlagTableLoader
from cctoolkit.toolchain.probe import FlagProbeCache
from tests.utils.mocks import RecordingRunner


@pytest.fixture(autouse=True)
def _reset_platform_cache():
    """Platform detection is cached per process; isolate each test."""
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture
def runner():
    """Recording runner that classifies every compiler as GNU."""
    return RecordingRunner(family="gnu")


@pytest.fixture
def tables():
    """Flag table loader over the shipped tables."""
    return FlagTableLoader()


@pytest.fixture
def probe_cache():
    """Fresh, isolated flag probe cache."""
    return FlagProbeCache()


@pytest.fixture
def linux_x64():
    return TargetTriple.parse("x86_64-unknown-linux-gnu")


@pytest.fixture
def linux_i686():
    return TargetTriple.parse("i686-unknown-linux-gnu")


@pytest.fixture
def windows_msvc():
    return TargetTriple.parse("x86_64-pc-windows-msvc")


@pytest.fixture
def apple_x64():
    return TargetTriple.parse("x86_64-apple-darwin")


@pytest.fixture
def mock_platform_linux():
    """Mock Linux platform."""
    return PlatformInfo(os="linux", arch="x64", os_version="6.1", abi="gnu")


@pytest.fixture
def mock_platform_windows():
    """Mock Windows platform."""
    return PlatformInfo(os="windows", arch="x64", os_version="10.0.19041", abi="msvc")
