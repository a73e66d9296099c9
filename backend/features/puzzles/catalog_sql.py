"""
backend/features/puzzles/catalog_sql.py

SQL-backed puzzle catalog. Same interface as InMemoryPuzzleCatalog.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from backend.core.database import get_db_session, puzzles
from backend.core.errors import DuplicatePuzzleError, NotFoundError
from backend.features.puzzles.selection import select_index
from backend.models.puzzle import Puzzle


def _row_to_puzzle(row) -> Puzzle:
    return Puzzle(
        id=row.id,
        language=row.language,
        position=row.position,
        answer=row.answer,
        hints=list(row.hints or []),
        meta=dict(row.meta or {}),
        created_at=row.created_at,
    )


class SqlPuzzleCatalog:
    def add(self, puzzle: Puzzle) -> Puzzle:
        try:
            with get_db_session() as session:
                result = session.execute(
                    insert(puzzles).values(
                        language=puzzle.language,
                        position=puzzle.position,
                        answer=puzzle.answer,
                        hints=list(puzzle.hints),
                        meta=dict(puzzle.meta),
                    )
                )
                new_id = result.inserted_primary_key[0]
        except IntegrityError:
            raise DuplicatePuzzleError(f"Duplicate puzzle position {puzzle.position} for {puzzle.language}")
        return self.get(new_id)

    def get(self, puzzle_id: int) -> Optional[Puzzle]:
        with get_db_session() as session:
            row = session.execute(select(puzzles).where(puzzles.c.id == puzzle_id)).first()
        return _row_to_puzzle(row) if row else None

    def list(self, language: str) -> List[Puzzle]:
        with get_db_session() as session:
            rows = session.execute(
                select(puzzles).where(puzzles.c.language == language).order_by(puzzles.c.position)
            ).fetchall()
        return [_row_to_puzzle(row) for row in rows]

    def next_position(self, language: str) -> int:
        with get_db_session() as session:
            highest = session.execute(
                select(func.max(puzzles.c.position)).where(puzzles.c.language == language)
            ).scalar()
        return 0 if highest is None else highest + 1

    def update(
        self,
        puzzle_id: int,
        answer: Optional[str] = None,
        hints: Optional[List[str]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Puzzle:
        current = self.get(puzzle_id)
        if current is None:
            raise NotFoundError("Puzzle not found")
        revised = current.revised(answer=answer, hints=hints, meta=meta)
        with get_db_session() as session:
            session.execute(
                update(puzzles)
                .where(puzzles.c.id == puzzle_id)
                .values(answer=revised.answer, hints=list(revised.hints), meta=dict(revised.meta))
            )
        return revised

    def delete(self, puzzle_id: int) -> None:
        with get_db_session() as session:
            result = session.execute(delete(puzzles).where(puzzles.c.id == puzzle_id))
            if result.rowcount == 0:
                raise NotFoundError("Puzzle not found")

    def stats(self) -> Dict[str, Any]:
        with get_db_session() as session:
            rows = session.execute(
                select(puzzles.c.language, func.count(), func.max(puzzles.c.created_at))
                .group_by(puzzles.c.language)
                .order_by(puzzles.c.language)
            ).fetchall()
        by_language = {language: {"count": count, "lastAdded": last_added} for language, count, last_added in rows}
        return {"total": sum(slot["count"] for slot in by_language.values()), "byLanguage": by_language}

    def for_date(self, date_key: str, language: str) -> Optional[Puzzle]:
        ordered = self.list(language)
        if not ordered:
            return None
        return ordered[select_index(date_key, len(ordered))]

    def clear(self) -> None:
        """FOR TESTING ONLY."""
        with get_db_session() as session:
            session.execute(puzzles.delete())
