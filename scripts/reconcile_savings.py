"""Recompute a user's savings box balances from the transaction log."""

import argparse
import asyncio
from pathlib import Path
import sys

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from app.core.database import AsyncSessionLocal  # noqa: E402
from app.core.logging_config import setup_logging  # noqa: E402
from app.core.validation import format_money  # noqa: E402
from app.domain import models  # noqa: F401,E402
from app.domain.savings.reconcile import reconcile_savings_boxes  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile savings box balances for a user")
    parser.add_argument("--user-id", type=int, required=True, help="Target user id")
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Write the recomputed balances (default is a dry run)",
    )
    return parser.parse_args()


async def reconcile(user_id: int, apply: bool) -> int:
    async with AsyncSessionLocal() as session:
        drift = await reconcile_savings_boxes(session, user_id=user_id, apply=apply)

    if not drift:
        print(f"All savings boxes of user {user_id} match their transaction log.")
        return 0

    for item in drift:
        print(
            f"{item.name:25} (#{item.box_id}) | stored: {format_money(item.stored):>12} | "
            f"computed: {format_money(item.computed):>12} | diff: {format_money(item.diff):>12}"
        )
    if apply:
        print(f"Applied corrections to {len(drift)} savings box(es).")
    else:
        print("Dry run: re-run with --apply to write the computed balances.")
    return 0 if apply else 1


if __name__ == "__main__":
    args = parse_args()
    sys.exit(asyncio.run(reconcile(args.user_id, args.apply)))
