#!/usr/bin/env python3
"""
Script to find and delete orphaned checklist submissions (submissions that have
no responses, e.g. left behind by older clients or partial imports)

Usage:
    python scripts/cleanup_orphaned_submissions.py          # Dry run (shows what would be deleted)
    python scripts/cleanup_orphaned_submissions.py --yes    # Actually delete orphaned submissions
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

try:
    from dotenv import load_dotenv
    load_dotenv()
except Exception as e:
    print(f"WARNING: Could not load .env file: {e}")

from sqlalchemy import exists

from forkcheck.db import SessionLocal
from forkcheck.models.models import ChecklistSubmission, ChecklistResponse


def find_orphaned_submissions(db):
    has_responses = exists().where(ChecklistResponse.submission_id == ChecklistSubmission.id)
    return (
        db.query(ChecklistSubmission)
        .filter(~has_responses)
        .order_by(ChecklistSubmission.submitted_at.asc())
        .all()
    )


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    auto_confirm = '--yes' in argv or '-y' in argv
    print("=" * 80)
    print("CLEANUP ORPHANED CHECKLIST SUBMISSIONS")
    print("=" * 80)

    db = SessionLocal()
    try:
        print(f"Total submissions in database: {db.query(ChecklistSubmission).count()}")
        orphaned = find_orphaned_submissions(db)
        print(f"\nFound {len(orphaned)} submissions without responses")

        if not orphaned:
            print("\n[OK] No orphaned submissions found. Nothing to clean up.")
            return 0

        for s in orphaned:
            print(f"  - Submission ID: {s.id}, badge: {s.badge_number}, submitted: {s.submitted_at}")

        if not auto_confirm:
            print("\n" + "=" * 80)
            print("This is a DRY RUN. No submissions will be deleted.")
            print("To actually delete, run: python scripts/cleanup_orphaned_submissions.py --yes")
            print("=" * 80)
            return 0

        for s in orphaned:
            db.delete(s)
        db.commit()
        print(f"\n[DELETED] {len(orphaned)} orphaned submissions")
        return 0
    except Exception as e:
        db.rollback()
        print(f"\n[ERROR] Cleanup failed: {e}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
