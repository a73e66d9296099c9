from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from backend.core.config import settings
from backend.core.errors import AlreadySolvedError, NotFoundError, StorageError
from backend.core.logging import log_event
from backend.features.modle import calendar
from backend.features.modle.engine import display_state, record_attempt, recompute_global
from backend.features.modle.languages import resolve_language, supported_languages
from backend.features.modle.store import UserRecord, get_user_store
from backend.features.puzzles.catalog import get_puzzle_catalog
from backend.features.puzzles.selection import is_correct_guess, normalize_title
from backend.models.modle import GLOBAL_KEY, LanguageStreakState, zero_state

Clock = Callable[[], datetime]


@dataclass
class StatusView:
    """Display state for one key plus today's play flags for the client."""

    key: str
    state: LanguageStreakState
    can_play: bool
    played_today: bool
    completed_today: bool

    def to_dict(self) -> Dict[str, Any]:
        data = self.state.to_dict()
        data.update(
            canPlay=self.can_play,
            playedToday=self.played_today,
            completedToday=self.completed_today,
        )
        return data


@dataclass
class SubmissionResult:
    language_key: str
    language: LanguageStreakState
    global_state: LanguageStreakState

    def to_dict(self) -> Dict[str, Any]:
        return {"language": self.language.to_dict(), "global": self.global_state.to_dict()}


class ModleService:
    """Server-authoritative daily streaks, per language and across languages.

    Every write is load -> mutate -> recompute `_global` -> compare-and-swap on
    the user's record version, retried when another write to the same user
    lands in between.
    """

    def __init__(
        self,
        store=None,
        puzzle_catalog=None,
        clock: Optional[Clock] = None,
        max_retries: Optional[int] = None,
        auto_provision: Optional[bool] = None,
    ):
        self._store = store
        self._puzzle_catalog = puzzle_catalog
        self._clock = clock or calendar.utc_now
        self._max_retries = max_retries if max_retries is not None else settings.MODLE_MAX_WRITE_RETRIES
        self._auto_provision = auto_provision

    @property
    def store(self):
        return self._store if self._store is not None else get_user_store()

    @property
    def auto_provision(self) -> bool:
        if self._auto_provision is not None:
            return self._auto_provision
        return settings.MODLE_AUTO_PROVISION_USERS

    @property
    def puzzle_catalog(self):
        return self._puzzle_catalog if self._puzzle_catalog is not None else get_puzzle_catalog()

    def today(self) -> str:
        return calendar.today(self._clock())

    # Reads -------------------------------------------------------------
    def get_status(self, user_id: str, language: Optional[str] = None) -> LanguageStreakState:
        """Stored state for one key (or `global`) with stale streaks zeroed for display."""
        return self.describe_status(user_id, language).state

    def describe_status(self, user_id: str, language: Optional[str] = None) -> StatusView:
        """Status plus canPlay/playedToday/completedToday for today.

        A language can be played until today is solved in it; `global` can be
        played until any language has an entry today. An unknown user reads as
        the zero state when auto-provisioning is on; nothing is written.
        """
        key = resolve_language(language, allow_global=True)
        today = self.today()
        record = self._load(user_id, missing_ok=self.auto_provision)
        state = display_state(LanguageStreakState.from_dict(record.modle.get(key)), today)
        entry = state.history.get(today)
        if key == GLOBAL_KEY:
            can_play = entry is None
        else:
            can_play = entry is None or not entry.correct
        return StatusView(
            key=key,
            state=state,
            can_play=can_play,
            played_today=entry is not None,
            completed_today=bool(entry and entry.correct),
        )

    def list_user_ids(self) -> List[str]:
        return self.store.iter_user_ids()

    # Writes ------------------------------------------------------------
    def submit_result(
        self,
        user_id: str,
        language: Optional[str] = None,
        correct: bool = False,
        guesses: Optional[Iterable[str]] = None,
        guess: Optional[str] = None,
    ) -> SubmissionResult:
        """Record today's attempt for one language and refresh `_global`.

        When `guess` is given it is checked against today's puzzle and decides
        `correct`; otherwise the caller's `correct` flag is used.

        Raises:
            ValidationError: unknown or reserved language
            NotFoundError: unknown user with auto-provisioning off, or no puzzle
                today when `guess` is given
            AlreadySolvedError: today is already solved for this language
            StorageError: the record could not be read or written
        """
        today = self.today()
        key = resolve_language(language, allow_global=False)
        submitted = [str(g) for g in (guesses or [])]
        if guess is not None:
            correct = self._check_guess(today, key, guess)
            normalized = normalize_title(guess.strip())
            if normalized:
                submitted.append(normalized)

        for attempt in range(1, self._max_retries + 1):
            record = self._load(user_id, provision=self.auto_provision)
            current = LanguageStreakState.from_dict(record.modle.get(key))
            try:
                updated = record_attempt(current, today, correct, submitted)
            except AlreadySolvedError as exc:
                log_event(
                    "info",
                    "modle.result.rejected",
                    user_id=user_id,
                    language=key,
                    event_type="modle.result.rejected",
                )
                exc.payload = {
                    "language": current.to_dict(),
                    "global": LanguageStreakState.from_dict(record.modle.get(GLOBAL_KEY)).to_dict(),
                }
                raise

            modle = copy.deepcopy(record.modle)
            modle[key] = updated.to_dict()
            global_state = recompute_global(modle, today, user_id=user_id)
            modle[GLOBAL_KEY] = global_state.to_dict()

            if self._swap(user_id, modle, record.version):
                log_event(
                    "info",
                    "modle.result.accepted",
                    user_id=user_id,
                    language=key,
                    event_type="modle.result.accepted",
                    extra={"correct": updated.history[today].correct, "streak": updated.streak, "global_streak": global_state.streak},
                )
                return SubmissionResult(language_key=key, language=updated, global_state=global_state)

            log_event(
                "warning",
                "modle.write.retry",
                user_id=user_id,
                language=key,
                event_type="modle.write.retry",
                extra={"attempt": attempt},
            )

        raise StorageError(f"Could not save result after {self._max_retries} attempts; please retry")

    def reset(self, user_id: str, language: Optional[str] = None) -> Dict[str, Any]:
        """Administrative reset to the zero state.

        With no language every configured language and `_global` are cleared;
        with one language only that key is cleared and `_global` is rebuilt
        from the others.
        """
        key = resolve_language(language, allow_global=False) if language else None

        for _ in range(self._max_retries):
            record = self._load(user_id)
            if key is None:
                modle = {lang: zero_state() for lang in supported_languages()}
                modle[GLOBAL_KEY] = zero_state()
            else:
                modle = copy.deepcopy(record.modle)
                modle[key] = zero_state()
                modle[GLOBAL_KEY] = recompute_global(modle, self.today(), user_id=user_id).to_dict()
            if self._swap(user_id, modle, record.version):
                log_event("info", "modle.reset", user_id=user_id, language=key, event_type="modle.reset")
                return modle

        raise StorageError(f"Could not reset Modle state after {self._max_retries} attempts")

    # Internal helpers -------------------------------------------------
    def _load(self, user_id: str, missing_ok: bool = False, provision: bool = False) -> UserRecord:
        try:
            record = self.store.get_user(user_id)
        except SQLAlchemyError as e:
            raise StorageError("Failed to load user record") from e
        if record is None:
            if provision:
                return self._provision(user_id)
            if missing_ok:
                return UserRecord(user_id=user_id)
            raise NotFoundError("User not found")
        return record

    def _provision(self, user_id: str) -> UserRecord:
        try:
            record = self.store.ensure_user(user_id)
        except SQLAlchemyError as e:
            raise StorageError("Failed to create user record") from e
        log_event("info", "modle.user.provisioned", user_id=user_id, event_type="modle.user.provisioned")
        return record

    def _swap(self, user_id: str, modle: Dict[str, Any], expected_version: int) -> bool:
        try:
            return self.store.compare_and_swap(user_id, modle, expected_version)
        except SQLAlchemyError as e:
            raise StorageError("Failed to save user record") from e

    def _check_guess(self, today: str, language: str, guess: str) -> bool:
        puzzle = self.puzzle_catalog.for_date(today, language)
        if puzzle is None:
            raise NotFoundError("No puzzle found for today")
        return is_correct_guess(guess, puzzle.answer)


# Singleton service used by routes
modle_service = ModleService()
