"""
backend/features/modle/store.py

User record store for Modle state.
In-memory implementation plus store selection (SQL lives in store_sql.py).

Both stores expose the same contract:
- get_user(user_id) -> UserRecord | None (a private copy)
- ensure_user(user_id) -> UserRecord
- compare_and_swap(user_id, modle, expected_version) -> bool
- iter_user_ids() -> list of ids
"""

import copy
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger("modle")


@dataclass
class UserRecord:
    user_id: str
    modle: Dict[str, Any] = field(default_factory=dict)
    version: int = 0


class InMemoryUserStore:
    """
    Process-local user store.

    A single lock makes compare_and_swap atomic; records are deep-copied on
    the way in and out so callers never share mutable state with the store.
    """

    def __init__(self):
        self._records: Dict[str, UserRecord] = {}
        self._lock = threading.Lock()

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._lock:
            record = self._records.get(user_id)
            return copy.deepcopy(record) if record else None

    def ensure_user(self, user_id: str) -> UserRecord:
        with self._lock:
            if user_id not in self._records:
                self._records[user_id] = UserRecord(user_id=user_id)
            return copy.deepcopy(self._records[user_id])

    def compare_and_swap(self, user_id: str, modle: Dict[str, Any], expected_version: int) -> bool:
        with self._lock:
            record = self._records.get(user_id)
            if record is None or record.version != expected_version:
                return False
            record.modle = copy.deepcopy(modle)
            record.version += 1
            return True

    def iter_user_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._records)

    def clear(self) -> None:
        """
        Drop all records.
        FOR TESTING ONLY.
        """
        with self._lock:
            self._records.clear()


# ============================================================================
# Store selection
# ============================================================================

_store = None
_store_lock = threading.Lock()


def get_user_store():
    """
    Get the configured user store.

    - SQL store when DATABASE_URL is set and the database answers
    - Falls back to in-memory otherwise
    The choice is cached until reset_store() is called.
    """
    global _store
    with _store_lock:
        if _store is not None:
            return _store

        database_url = os.getenv("DATABASE_URL") or os.getenv("TEST_DATABASE_URL")
        if database_url:
            try:
                from backend.features.modle.store_sql import SqlUserStore
                from backend.core.database import check_connection, create_all_tables

                if check_connection():
                    create_all_tables()
                    _store = SqlUserStore()
                    return _store
                logger.warning("[modle.store] database unavailable, falling back to in-memory")
            except Exception as e:
                logger.warning(f"[modle.store] failed to initialize SQL store: {e}; falling back to in-memory")

        _store = InMemoryUserStore()
        return _store


def set_user_store(store) -> None:
    """Install a specific store (tests, scripts)."""
    global _store
    with _store_lock:
        _store = store


def reset_store() -> None:
    """Forget the cached store so the next call re-selects it."""
    global _store
    with _store_lock:
        _store = None
