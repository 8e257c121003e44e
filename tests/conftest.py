"""
Global pytest fixtures for the Link Platform test suite.

Responsibilities:
    - Provide a fresh FastAPI TestClient via the app factory for integration tests
    - Provide an isolated in-memory Storage for direct testing
    - Provide a LinkRegistry and RedirectResolver wired to that Storage

Why an app factory?
    Using `create_app()` ensures each test gets fresh in-memory state,
    eliminating cross-test flakiness.
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from link_platform.storage.storage import Storage
from link_platform.manager.link_registry import LinkRegistry
from link_platform.manager.resolver import RedirectResolver


@pytest.fixture
def storage() -> Storage:
    """Provide a fresh in-memory Storage backend."""
    return Storage()


@pytest.fixture
def registry(storage: Storage) -> LinkRegistry:
    """Provide a LinkRegistry wired to the storage fixture."""
    return LinkRegistry(storage=storage)


@pytest.fixture
def resolver(registry: LinkRegistry) -> RedirectResolver:
    return RedirectResolver(registry)


@pytest.fixture
def client() -> TestClient:
    """
    Provide a fresh TestClient with a new app instance.

    Notes:
        - Storage is injected explicitly so the test never depends on
          LINK_STORAGE_BACKEND in the environment.
    """
    app = create_app(storage=Storage())
    return TestClient(app)
