"""
Create Modle user records ahead of first play.

Needed when MODLE_AUTO_PROVISION_USERS is off and accounts are synced from
the main app. Existing records are left untouched.
"""
from __future__ import annotations

import argparse
from typing import Dict, Iterable, List, Optional

from backend.features.modle.store import get_user_store


def create_users(user_ids: Iterable[str], store=None) -> Dict[str, List[str]]:
    target = store or get_user_store()
    report: Dict[str, List[str]] = {"created": [], "existing": []}
    for raw in user_ids:
        user_id = raw.strip()
        if not user_id:
            continue
        if target.get_user(user_id) is not None:
            report["existing"].append(user_id)
            continue
        target.ensure_user(user_id)
        report["created"].append(user_id)
    return report


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create Modle user records.")
    parser.add_argument("user_ids", nargs="+", help="User ids issued by the main app.")
    args = parser.parse_args(argv)

    print(create_users(args.user_ids))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
