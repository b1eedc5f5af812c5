"""Report (and optionally repair) drift between counters and their detail rows.

Usage: python scripts/check_counters.py [--fix]
"""
import asyncio
import os
import sys

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from community.db.session import async_session_maker, engine
from community.services.reconcile_service import reconcile_counters


async def check_counters(fix: bool):
    async with async_session_maker() as db:
        report = await reconcile_counters(db, dry_run=not fix)
    await engine.dispose()

    print(f"Checked {report.comments_checked} comments and {report.posts_checked} posts.")
    if not report.drifts:
        print("All counters match their rows.")
        return
    print(f"\n{report.drift_count} drifted counters:")
    for drift in report.drifts:
        print(f"  - {drift.table}#{drift.row_id}.{drift.field}: stored={drift.stored} actual={drift.actual}")
    if report.fixed:
        print("\nRepaired.")
    else:
        print("\nRun with --fix to repair.")


if __name__ == "__main__":
    asyncio.run(check_counters(fix="--fix" in sys.argv[1:]))
