"""Deterministic daily puzzle selection and fuzzy title matching."""

import math
import re

from backend.features.modle.calendar import epoch_days

_NON_ALNUM = re.compile(r"[^A-Z0-9]")


def select_index(date_key: str, count: int) -> int:
    """Index of the puzzle for `date_key` among `count` ordered puzzles.

    Cycles by days since the epoch, nudged forward one slot whenever it
    would repeat yesterday's pick.
    """
    if count <= 0:
        raise ValueError("count must be positive")
    days = epoch_days(date_key)
    index = days % count
    if count > 1 and index == (days - 1) % count:
        index = (index + 1) % count
    return index


def normalize_title(value: str) -> str:
    if not value:
        return ""
    return _NON_ALNUM.sub("", str(value).upper())


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            curr[j] = min(prev[j] + 1, curr[j - 1] + 1, prev[j - 1] + cost)
        prev = curr
    return prev[len(b)]


def match_threshold(answer: str) -> int:
    """Allowed edit distance: 20% of the normalized answer, at least 2."""
    return max(2, math.ceil(len(normalize_title(answer)) * 0.2))


def is_correct_guess(guess: str, answer: str) -> bool:
    normalized_guess = normalize_title((guess or "").strip())
    if not normalized_guess:
        return False
    return levenshtein(normalized_guess, normalize_title(answer)) <= match_threshold(answer)
