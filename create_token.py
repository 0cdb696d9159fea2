#!/usr/bin/env python3
"""
Issue an access token for an existing user, e.g. for API smoke tests.

Usage:
    python create_token.py --email admin@example.com --days 365
"""

import argparse
import sys

from event_hub_api.app.core.db import get_connection
from event_hub_api.app.core.security import create_access_token


def main() -> None:
    ap = argparse.ArgumentParser(description="Issue an Event Hub access token.")
    ap.add_argument("--email", required=True, help="Email of the user the token is for")
    ap.add_argument("--days", type=int, default=7, help="Token lifetime in days")
    args = ap.parse_args()

    conn = get_connection()
    try:
        row = conn.execute("SELECT id FROM users WHERE email = ?", (args.email.lower(),)).fetchone()
    finally:
        conn.close()
    if not row:
        print(f"[!] No user found with email: {args.email}", file=sys.stderr)
        sys.exit(2)
    print(create_access_token(row["id"], expires_in=args.days * 24 * 60 * 60))


if __name__ == "__main__":
    main()
