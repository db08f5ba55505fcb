#!/usr/bin/env python3
"""
Export feedback submissions.

Feedback is write-only for app users, so reading it back goes through the
Admin SDK with a service account.

Usage:
    python scripts/export_feedback.py
    python scripts/export_feedback.py --since 2024-01-01 --limit 50 --output feedback.json

Environment Variables:
    FIREBASE_CREDENTIALS_PATH or FIREBASE_CONFIG_JSON: service account
"""

import argparse
import json
import sys
from datetime import UTC, datetime

import dotenv
from google.cloud.firestore import FieldFilter, Query

from pain_tracker.config import settings
from pain_tracker.core.firebase import get_firebase_app, initialize_firebase
from pain_tracker.services.feedback_service import FEEDBACK_COLLECTION

dotenv.load_dotenv()


def fetch_feedback(since: datetime | None, limit: int) -> list[dict]:
    """Read feedback documents, newest first."""
    from firebase_admin import firestore

    db = firestore.client(app=get_firebase_app())
    query = db.collection(FEEDBACK_COLLECTION)
    if since is not None:
        query = query.where(filter=FieldFilter("createdAt", ">=", since))
    query = query.order_by("createdAt", direction=Query.DESCENDING).limit(limit)

    records = []
    for snapshot in query.stream():
        data = snapshot.to_dict()
        records.append(
            {
                "id": snapshot.id,
                "user_id": data.get("userId"),
                "user_email": data.get("userEmail"),
                "feedback": data.get("feedback"),
                "attachments": data.get("attachments", []),
                "created_at": data.get("createdAt"),
            }
        )
    return records


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Export user feedback as JSON")
    parser.add_argument(
        "--since",
        type=lambda value: datetime.fromisoformat(value).replace(tzinfo=UTC),
        help="Only feedback created on or after this date (YYYY-MM-DD)",
    )
    parser.add_argument("--limit", type=int, default=100, help="Maximum records (default: 100)")
    parser.add_argument("--output", type=str, help="Write to this file instead of stdout")
    args = parser.parse_args()

    initialize_firebase(
        settings.firebase_credentials_path,
        settings.firebase_config_json,
        settings.firebase_storage_bucket,
    )

    records = fetch_feedback(args.since, args.limit)
    payload = json.dumps(records, indent=2, default=str)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(payload)
        print(f"Exported {len(records)} feedback records to {args.output}", file=sys.stderr)
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
