from __future__ import annotations
import pytest
from fitchallenge.main import app
from fitchallenge.services.documents import MemoryDocumentStore, get_store


@pytest.fixture
def store():
    """Fresh in-memory document store wired into the app for one test."""
    s = MemoryDocumentStore()
    app.dependency_overrides[get_store] = lambda: s
    yield s
    app.dependency_overrides.clear()
