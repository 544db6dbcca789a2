import argparse
import os
import sys
from collections import defaultdict
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from usermirror.classifier import group_key
from usermirror.database import MirrorStore, resolve_database_path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="List suspicious account groups in the local mirror")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite mirror (defaults to USERMIRROR_DB_PATH or data/users.sqlite3)",
    )
    parser.add_argument(
        "--enabled-only",
        action="store_true",
        help="Only show accounts that have not been disabled yet",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    db_path = resolve_database_path(args.db_path or os.getenv("USERMIRROR_DB_PATH"))
    if not db_path.exists():
        print(f"Error: mirror database not found at {db_path}", file=sys.stderr)
        return 1

    store = MirrorStore(db_path)
    groups = defaultdict(list)
    for row in store.list_rows():
        if not row.suspicious:
            continue
        if args.enabled_only and row.user.disabled:
            continue
        groups[group_key(row.user)].append(row.user)

    if not groups:
        print("No suspicious accounts in the mirror.")
        return 0

    total = sum(len(users) for users in groups.values())
    print(f"{total} suspicious account(s) in {len(groups)} group(s):")
    for key in sorted(groups):
        print(f"\n[{key}]")
        for user in groups[key]:
            state = "disabled" if user.disabled else "enabled"
            print(f"  {user.id:<32}  {user.email or '<no email>':<32}  {state}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
