"""
backend/features/puzzles/catalog.py

Puzzle catalog: in-memory implementation and store selection.
The SQL implementation lives in catalog_sql.py and keeps the same interface:
add, get, list, update, delete, stats, for_date.
"""

import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from backend.core.errors import DuplicatePuzzleError, NotFoundError
from backend.features.puzzles.selection import select_index
from backend.models.puzzle import Puzzle

logger = logging.getLogger("modle")


def summarize(puzzles: List[Puzzle]) -> Dict[str, Any]:
    """Total count plus count and latest creation time per language."""
    by_language: Dict[str, Dict[str, Any]] = {}
    for puzzle in puzzles:
        slot = by_language.setdefault(puzzle.language, {"count": 0, "lastAdded": None})
        slot["count"] += 1
        if puzzle.created_at and (slot["lastAdded"] is None or puzzle.created_at > slot["lastAdded"]):
            slot["lastAdded"] = puzzle.created_at
    return {"total": len(puzzles), "byLanguage": dict(sorted(by_language.items()))}


class InMemoryPuzzleCatalog:
    def __init__(self):
        self._puzzles: Dict[int, Puzzle] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def add(self, puzzle: Puzzle) -> Puzzle:
        """Store a puzzle; (language, position) must be unique."""
        with self._lock:
            self._check_slot_free(puzzle.language, puzzle.position)
            stored = puzzle.model_copy(update={"id": self._next_id, "created_at": datetime.now(timezone.utc)})
            self._puzzles[stored.id] = stored
            self._next_id += 1
            return stored

    def get(self, puzzle_id: int) -> Optional[Puzzle]:
        with self._lock:
            return self._puzzles.get(puzzle_id)

    def list(self, language: str) -> List[Puzzle]:
        with self._lock:
            found = [p for p in self._puzzles.values() if p.language == language]
        return sorted(found, key=lambda p: p.position)

    def next_position(self, language: str) -> int:
        ordered = self.list(language)
        return ordered[-1].position + 1 if ordered else 0

    def update(
        self,
        puzzle_id: int,
        answer: Optional[str] = None,
        hints: Optional[List[str]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Puzzle:
        """Replace answer/hints and merge meta. Raises NotFoundError for an unknown id."""
        with self._lock:
            current = self._puzzles.get(puzzle_id)
            if current is None:
                raise NotFoundError("Puzzle not found")
            updated = current.revised(answer=answer, hints=hints, meta=meta)
            self._puzzles[puzzle_id] = updated
            return updated

    def delete(self, puzzle_id: int) -> None:
        with self._lock:
            if self._puzzles.pop(puzzle_id, None) is None:
                raise NotFoundError("Puzzle not found")

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return summarize(list(self._puzzles.values()))

    def for_date(self, date_key: str, language: str) -> Optional[Puzzle]:
        ordered = self.list(language)
        if not ordered:
            return None
        return ordered[select_index(date_key, len(ordered))]

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with self._lock:
            self._puzzles.clear()
            self._next_id = 1

    def _check_slot_free(self, language: str, position: int) -> None:
        for existing in self._puzzles.values():
            if existing.language == language and existing.position == position:
                raise DuplicatePuzzleError(f"Duplicate puzzle position {position} for {language}")

_catalog = None
_catalog_lock = threading.Lock()


def get_puzzle_catalog():
    """SQL catalog when DATABASE_URL is set and reachable, otherwise in-memory."""
    global _catalog
    with _catalog_lock:
        if _catalog is not None:
            return _catalog

        database_url = os.getenv("DATABASE_URL") or os.getenv("TEST_DATABASE_URL")
        if database_url:
            try:
                from backend.features.puzzles.catalog_sql import SqlPuzzleCatalog
                from backend.core.database import check_connection, create_all_tables

                if check_connection():
                    create_all_tables()
                    _catalog = SqlPuzzleCatalog()
                    return _catalog
                logger.warning("[puzzles] database unavailable, falling back to in-memory")
            except Exception as e:
                logger.warning(f"[puzzles] failed to initialize SQL catalog: {e}; falling back to in-memory")

        _catalog = InMemoryPuzzleCatalog()
        return _catalog


def set_puzzle_catalog(catalog) -> None:
    global _catalog
    with _catalog_lock:
        _catalog = catalog


def reset_catalog() -> None:
    global _catalog
    with _catalog_lock:
        _catalog = None
