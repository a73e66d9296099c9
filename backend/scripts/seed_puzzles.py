"""
Load Modle puzzles from a JSON file into the puzzle catalog.

File format: [{"language": "English", "answer": "AVATAR", "hints": [...], "meta": {...}}, ...]
Positions are assigned per language in file order unless given explicitly.
Puzzles whose (language, position) already exists are skipped.
"""
from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from backend.core.errors import ConflictError
from backend.features.modle.languages import resolve_language
from backend.features.puzzles.catalog import get_puzzle_catalog
from backend.models.puzzle import Puzzle


def seed_puzzles(items: List[Dict], catalog=None) -> Dict:
    target = catalog or get_puzzle_catalog()
    report = {"added": 0, "skipped": 0, "invalid": 0}
    next_position: Dict[str, int] = {}

    for item in items:
        try:
            language = resolve_language(item.get("language"))
            position = item.get("position")
            if position is None:
                if language not in next_position:
                    next_position[language] = target.next_position(language)
                position = next_position[language]
            puzzle = Puzzle(
                language=language,
                position=position,
                answer=item.get("answer", ""),
                hints=item.get("hints") or [],
                meta=item.get("meta") or {},
            )
        except (PydanticValidationError, ValueError):
            report["invalid"] += 1
            continue

        try:
            target.add(puzzle)
            report["added"] += 1
        except ConflictError:
            report["skipped"] += 1
        next_position[language] = max(next_position.get(language, 0), position + 1)

    return report


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed Modle puzzles from a JSON file.")
    parser.add_argument("path", type=Path, help="JSON file with a list of puzzles.")
    args = parser.parse_args(argv)

    items = json.loads(args.path.read_text(encoding="utf-8"))
    print(seed_puzzles(items))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
