# backend/conftest.py
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add repo root to PYTHONPATH so `backend.*` imports resolve without installing
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


class FixedClock:
    """Mutable UTC clock injected into ModleService."""

    def __init__(self, day: str = "2024-06-10", hour: int = 12):
        self.set(day, hour)

    def set(self, day: str, hour: int = 12) -> None:
        year, month, dom = (int(p) for p in day.split("-"))
        self.now = datetime(year, month, dom, hour, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(scope="function", autouse=True)
def isolated_stores():
    """
    Give every test fresh in-memory stores, even when DATABASE_URL is set.

    Tests that need SQL install their own store explicitly.
    """
    from backend.features.modle.store import InMemoryUserStore, set_user_store, reset_store
    from backend.features.puzzles.catalog import InMemoryPuzzleCatalog, set_puzzle_catalog, reset_catalog

    user_store = InMemoryUserStore()
    catalog = InMemoryPuzzleCatalog()
    set_user_store(user_store)
    set_puzzle_catalog(catalog)
    yield user_store, catalog
    reset_store()
    reset_catalog()


@pytest.fixture
def user_store(isolated_stores):
    return isolated_stores[0]


@pytest.fixture
def puzzle_catalog(isolated_stores):
    return isolated_stores[1]


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def service(user_store, puzzle_catalog, clock):
    from backend.features.modle.service import ModleService

    return ModleService(store=user_store, puzzle_catalog=puzzle_catalog, clock=clock)


@pytest.fixture
def client(service):
    """TestClient wired to the fixture service (fixed clock, fresh store)."""
    from fastapi.testclient import TestClient
    from backend.api.modle import get_modle_service
    from backend.main import app

    app.dependency_overrides[get_modle_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_modle_service, None)
