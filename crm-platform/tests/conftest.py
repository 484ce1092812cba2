"""
Pytest configuration.

Adds the crm-platform directory to the Python path so tests can import
domain, repositories, services and api, and provides in-memory collaborators
so no test needs a live Supabase project.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add the crm-platform directory (and this directory, for `fakes`) to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import FakeIdentityProvider, InMemoryEntityStore, MutableClock  # noqa: E402


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()
