"""
Backfill instructor/volunteer profiles for existing users

Runs the profile sync for every user whose role is instructor or voluntario,
linking legacy profile rows by email or creating missing ones.

Usage:
    python scripts/sync_user_profiles.py [--dry-run] [--role instructor|voluntario]
"""
import sys
import os
import argparse
from collections import Counter

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy.exc import SQLAlchemyError

from parkhub.db import SessionLocal
from parkhub.logging import setup_logging
from parkhub.models.models import User
from parkhub.services.profile_sync import reconcile_profile, PROFILE_MODELS


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync instructor/volunteer profiles with users")
    parser.add_argument("--dry-run", action="store_true", help="Report what would change and roll back")
    parser.add_argument("--role", choices=sorted(PROFILE_MODELS.keys()), help="Only sync users with this role")
    args = parser.parse_args()

    setup_logging()
    roles = [args.role] if args.role else list(PROFILE_MODELS.keys())
    db = SessionLocal()
    totals: Counter = Counter()
    try:
        users = db.query(User).filter(User.role.in_(roles)).order_by(User.id.asc()).all()
        print(f"Users to sync: {len(users)}")
        for u in users:
            result = reconcile_profile(db, u, source="script")
            totals[result.action] += 1
            if result.unlinked_duplicates:
                totals["unlinked_duplicates"] += result.unlinked_duplicates
            print(f"  user {u.id} <{u.email}> -> {result.action} {result.profile_type} {result.profile_id}")

        if args.dry_run:
            db.rollback()
            print("\nDRY RUN: no changes were saved.")
        else:
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        print(f"[ERROR] Sync failed, rolled back: {e}")
        return 1
    finally:
        db.close()

    print("\nSummary:")
    for action in ("updated", "linked", "created", "unlinked_duplicates"):
        print(f"  {action}: {totals.get(action, 0)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
