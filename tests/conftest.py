"""
Shared pytest fixtures and configuration for fluxstore tests.
"""

import pytest

from fluxstore import capabilities


@pytest.fixture
def events():
    """A list that middleware and subscribers append to, to check ordering."""
    return []


@pytest.fixture(autouse=True)
def restore_capabilities():
    """Undo capability registrations made by a test."""
    registered = dict(capabilities._capabilities)
    cached = dict(capabilities._cache)
    yield
    capabilities._capabilities.clear()
    capabilities._capabilities.update(registered)
    capabilities._cache.clear()
    capabilities._cache.update(cached)
