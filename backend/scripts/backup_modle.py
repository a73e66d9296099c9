"""
Dump every user's Modle state to a JSON file before maintenance.
"""
from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from backend.features.modle.store import get_user_store


def collect_modle(store=None) -> Dict[str, Dict]:
    source = store or get_user_store()
    dump: Dict[str, Dict] = {}
    for user_id in source.iter_user_ids():
        record = source.get_user(user_id)
        if record is not None and record.modle:
            dump[user_id] = record.modle
    return dump


def write_backup(out: Path, store=None) -> Dict:
    dump = collect_modle(store)
    payload = {
        "exported_at": datetime.now(timezone.utc).isoformat(),
        "users": dump,
    }
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    return {"users": len(dump), "path": str(out)}


def main(argv: Optional[List[str]] = None) -> int:
    default_name = f"modle_backup_{datetime.now(timezone.utc):%Y%m%dT%H%M%SZ}.json"
    parser = argparse.ArgumentParser(description="Back up all users' Modle state to JSON.")
    parser.add_argument("--out", type=Path, default=Path(default_name), help="Output file path.")
    args = parser.parse_args(argv)

    print(write_backup(args.out))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
