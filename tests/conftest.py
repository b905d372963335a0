"""
Pytest configuration file for aliasstore tests.
"""
import asyncio
import sys
import pytest
from pathlib import Path
from unittest.mock import MagicMock, Mock

# Add the parent directory to sys.path to allow importing from aliasstore
sys.path.insert(0, str(Path(__file__).parent.parent))

# Define common fixtures that can be used across all tests

@pytest.fixture(scope="session")
def tests_root_dir():
    """Return the root directory of the tests."""
    return Path(__file__).parent

@pytest.fixture(scope="session")
def tests_data_dir():
    """Return the directory for test data (contains test.txt with 'xxtestxx')."""
    return Path(__file__).parent / "data"

@pytest.fixture
def delayed_resolver():
    """Build an async resolver that answers after a delay."""
    def _make(resolve, delay: float = 0.01):
        async def resolver(name):
            await asyncio.sleep(delay)
            return resolve(name)
        return resolver
    return _make

@pytest.fixture
def mock_backend():
    """A MagicMock backend plus a storage constructor returning it."""
    backend = MagicMock(name="backend")
    storage = Mock(return_value=backend)
    return backend, storage
