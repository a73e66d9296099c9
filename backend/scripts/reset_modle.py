"""
Reset Modle streaks to the zero state.

Dry-run by default. Use --live to apply updates.
"""
from __future__ import annotations

import argparse
import os
from typing import Dict, List, Optional

from backend.features.modle.languages import resolve_language, supported_languages
from backend.features.modle.service import ModleService
from backend.models.modle import GLOBAL_KEY, LanguageStreakState


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _needs_reset(modle: Dict, keys: List[str]) -> bool:
    for key in keys:
        raw = modle.get(key)
        if raw is None:
            return True
        state = LanguageStreakState.from_dict(raw)
        if state.streak or state.history or state.last_played:
            return True
    return False


def reset_streaks(
    *,
    dry_run: bool,
    service: Optional[ModleService] = None,
    user_id: Optional[str] = None,
    language: Optional[str] = None,
    limit: Optional[int] = None,
) -> Dict:
    svc = service or ModleService()
    report = {
        "users_examined": 0,
        "users_to_update": 0,
        "updated": 0,
        "sample": [],
        "dry_run": dry_run,
    }

    if language:
        language = resolve_language(language)
    keys = [language] if language else [*supported_languages(), GLOBAL_KEY]
    user_ids = [user_id] if user_id else svc.list_user_ids()

    for uid in user_ids:
        if limit is not None and report["users_examined"] >= limit:
            break
        report["users_examined"] += 1

        record = svc.store.get_user(uid)
        if record is None or not _needs_reset(record.modle, keys):
            continue

        report["users_to_update"] += 1
        if len(report["sample"]) < 5:
            report["sample"].append(uid)
        if not dry_run:
            svc.reset(uid, language)
            report["updated"] += 1

    return report


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Reset Modle streaks and history to zero.")
    parser.add_argument("--live", dest="dry_run", action="store_false", help="Apply the reset.")
    parser.add_argument("--dry-run", dest="dry_run", action="store_true", help="Report without writes.")
    parser.add_argument("--user", dest="user_id", default=None, help="Only reset this user id.")
    parser.add_argument("--language", default=None, help="Only reset this language (global is rebuilt).")
    parser.add_argument("--limit", type=int, default=None, help="Examine at most this many users.")
    parser.set_defaults(dry_run=_parse_bool(os.getenv("MODLE_RESET_DRY_RUN", "1"), True))
    args = parser.parse_args(argv)

    report = reset_streaks(dry_run=args.dry_run, user_id=args.user_id, language=args.language, limit=args.limit)
    print(report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
