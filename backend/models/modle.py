from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

GLOBAL_KEY = "_global"


def dedupe_guesses(guesses: Iterable[str]) -> List[str]:
    """Collapse duplicates, keeping first-seen order for stable output."""
    seen: Dict[str, None] = {}
    for guess in guesses:
        seen.setdefault(guess, None)
    return list(seen)


def coerce_guesses(raw: Any) -> List[str]:
    """Stored guesses as a deduped list; a lone string counts as one guess."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [raw]
    elif not isinstance(raw, (list, tuple)):
        return []
    return dedupe_guesses(str(g) for g in raw if g is not None and str(g))


@dataclass
class DayEntry:
    """One calendar day of play under one language key (or `_global`)."""

    date: str
    correct: bool = False
    guesses: List[str] = field(default_factory=list)
    # Only set on `_global` entries
    played: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "date": self.date,
            "correct": self.correct,
            "guesses": list(self.guesses),
        }
        if self.played is not None:
            data["played"] = self.played
        return data

    @classmethod
    def from_dict(cls, date_key: str, raw: Dict[str, Any]) -> DayEntry:
        played = raw.get("played")
        return cls(
            date=raw.get("date") or date_key,
            correct=bool(raw.get("correct")),
            guesses=coerce_guesses(raw.get("guesses")),
            played=bool(played) if played is not None else None,
        )


@dataclass
class LanguageStreakState:
    """
    Per-language (or global) streak state as stored under `user.modle[key]`.
    Day-level, UTC only, no direct DB concerns.
    """

    last_played: Optional[str] = None
    streak: int = 0
    history: Dict[str, DayEntry] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastPlayed": self.last_played,
            "streak": self.streak,
            "history": {day: entry.to_dict() for day, entry in sorted(self.history.items())},
        }

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> LanguageStreakState:
        """Build state from the stored mapping; non-object history entries are dropped."""
        if not isinstance(raw, dict):
            return cls()
        history_raw = raw.get("history") or {}
        history: Dict[str, DayEntry] = {}
        if isinstance(history_raw, dict):
            for day, entry in history_raw.items():
                if isinstance(entry, dict):
                    history[day] = DayEntry.from_dict(day, entry)
        streak = raw.get("streak") or 0
        return cls(
            last_played=raw.get("lastPlayed"),
            streak=int(streak) if isinstance(streak, (int, float)) else 0,
            history=history,
        )

    def copy(self) -> LanguageStreakState:
        return LanguageStreakState.from_dict(self.to_dict())


def zero_state() -> Dict[str, Any]:
    """The stored shape written for a fresh or reset key."""
    return LanguageStreakState().to_dict()
