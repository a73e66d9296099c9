"""
backend/features/modle/store_sql.py

SQL-backed user record store (PostgreSQL in production, SQLite in tests).

The whole `modle` map lives in one JSON column, so a language state and the
`_global` aggregate are always written by the same UPDATE.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError

from backend.core.database import get_db_session, users
from backend.features.modle.store import UserRecord


class SqlUserStore:
    """
    Database-backed store with optimistic concurrency on `app_users.version`.

    Maintains identical interface to InMemoryUserStore.
    """

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with get_db_session() as session:
            row = session.execute(
                select(users.c.user_id, users.c.modle, users.c.version).where(users.c.user_id == user_id)
            ).first()
        if not row:
            return None
        return UserRecord(user_id=row.user_id, modle=dict(row.modle or {}), version=int(row.version or 0))

    def ensure_user(self, user_id: str) -> UserRecord:
        existing = self.get_user(user_id)
        if existing:
            return existing
        now = datetime.now(timezone.utc)
        try:
            with get_db_session() as session:
                session.execute(
                    insert(users).values(
                        user_id=user_id,
                        status="active",
                        modle={},
                        version=0,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except IntegrityError:
            # Created concurrently
            pass
        return self.get_user(user_id)

    def compare_and_swap(self, user_id: str, modle: Dict[str, Any], expected_version: int) -> bool:
        """
        Write `modle` only if the stored version still equals `expected_version`.

        Returns:
            True if exactly one row was updated, False on a lost race
        """
        with get_db_session() as session:
            result = session.execute(
                update(users)
                .where(users.c.user_id == user_id, users.c.version == expected_version)
                .values(
                    modle=modle,
                    version=users.c.version + 1,
                    updated_at=datetime.now(timezone.utc),
                )
            )
            return result.rowcount == 1

    def iter_user_ids(self) -> List[str]:
        with get_db_session() as session:
            rows = session.execute(select(users.c.user_id).order_by(users.c.user_id)).fetchall()
        return [row[0] for row in rows]

    def clear(self) -> None:
        """
        Delete all user rows.
        FOR TESTING ONLY.
        """
        with get_db_session() as session:
            session.execute(users.delete())
