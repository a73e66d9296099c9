from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from backend.core.errors import AlreadySolvedError
from backend.core.logging import log_event
from backend.features.modle.calendar import is_day_key, previous_day
from backend.models.modle import (
    GLOBAL_KEY,
    DayEntry,
    LanguageStreakState,
    coerce_guesses,
    dedupe_guesses,
)


def compute_streak(history: Mapping[str, DayEntry], today: str) -> int:
    """Count consecutive correct days walking backward from `today`.

    The walk always starts at `today`; a missing or incorrect day ends it,
    so an unsolved today yields 0.
    """
    streak = 0
    current = today
    while True:
        entry = history.get(current)
        if entry is None or not entry.correct:
            return streak
        streak += 1
        current = previous_day(current)


def record_attempt(
    state: Optional[LanguageStreakState],
    today: str,
    correct: bool,
    guesses: Iterable[str],
) -> LanguageStreakState:
    """Apply one scored attempt for `today` and return the updated state.

    The input state is not mutated. Raises AlreadySolvedError when today is
    already correct; in that case nothing changes.
    """
    updated = state.copy() if state is not None else LanguageStreakState()
    existing = updated.history.get(today)

    if existing is not None and existing.correct:
        raise AlreadySolvedError("Already solved today's puzzle")

    if existing is not None:
        # Merge into today's incorrect entry; correctness can only move false -> true
        existing.guesses = dedupe_guesses([*existing.guesses, *guesses])
        existing.correct = existing.correct or bool(correct)
    else:
        updated.history[today] = DayEntry(
            date=today,
            correct=bool(correct),
            guesses=dedupe_guesses(guesses),
        )

    updated.streak = compute_streak(updated.history, today)
    updated.last_played = today
    return updated


def recompute_global(modle: Mapping[str, Any], today: str, *, user_id: Optional[str] = None) -> LanguageStreakState:
    """Rebuild the `_global` aggregate from every per-language history.

    Works on the raw stored mapping so one malformed language entry is
    skipped instead of failing the whole recompute.
    """
    union: Dict[str, DayEntry] = {}

    for key, raw_state in modle.items():
        if not key or key == GLOBAL_KEY:
            continue
        if not isinstance(raw_state, dict) or not isinstance(raw_state.get("history"), dict):
            _log_skipped(user_id, key, "state")
            continue

        for day, raw_entry in raw_state["history"].items():
            if not isinstance(raw_entry, dict) or not is_day_key(day):
                _log_skipped(user_id, key, day)
                continue
            slot = union.get(day)
            if slot is None:
                # First language seen for a day seeds its guesses
                slot = DayEntry(
                    date=day,
                    correct=False,
                    guesses=coerce_guesses(raw_entry.get("guesses")),
                    played=True,
                )
                union[day] = slot
            slot.correct = slot.correct or bool(raw_entry.get("correct"))

    last_played = max(union) if union else None
    return LanguageStreakState(
        last_played=last_played,
        streak=compute_streak(union, today),
        history=union,
    )


def display_state(state: LanguageStreakState, today: str) -> LanguageStreakState:
    """Read-time view: a stale streak (last played before yesterday) shows as 0.

    Returns a copy; the stored streak is left for the next write to recompute.
    """
    view = state.copy()
    if view.last_played not in (today, previous_day(today)):
        view.streak = 0
    return view


def _log_skipped(user_id: Optional[str], language: str, where: str) -> None:
    log_event(
        "warning",
        "modle.global.skipped_entry",
        user_id=user_id,
        language=language,
        event_type="modle.global.skipped_entry",
        extra={"entry": where},
    )
