#!/usr/bin/env python3
"""
Account maintenance for the Event Hub SQLite database.

Administrators cannot be created through the API; use ``set-role`` to
promote an existing account.  This script never reads or reveals
existing passwords.

Usage:
    python manage_users.py set-password --email admin@example.com
    python manage_users.py set-role --email admin@example.com --role admin
    python manage_users.py verify --email admin@example.com

The database is the one configured by ``DATABASE_URL``.
"""

import argparse
import getpass
import sys

from event_hub_api.app.core.db import get_connection, init_db
from event_hub_api.app.core.security import hash_password

ROLES = ("student", "professional", "institution", "admin")


def update_user(email: str, assignments: str, params: tuple) -> None:
    conn = get_connection()
    try:
        cur = conn.cursor()
        row = cur.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
        if not row:
            print(f"[!] No user found with email: {email}", file=sys.stderr)
            sys.exit(2)
        cur.execute(
            f"UPDATE users SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE email = ?",
            params + (email,),
        )
        conn.commit()
    finally:
        conn.close()


def main() -> None:
    ap = argparse.ArgumentParser(description="Manage Event Hub user accounts.")
    sub = ap.add_subparsers(dest="command", required=True)

    pw = sub.add_parser("set-password", help="Set a new password")
    pw.add_argument("--email", required=True)
    pw.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")

    role = sub.add_parser("set-role", help="Change a user's role")
    role.add_argument("--email", required=True)
    role.add_argument("--role", required=True, choices=ROLES)

    verify = sub.add_parser("verify", help="Mark a user's email as verified")
    verify.add_argument("--email", required=True)

    args = ap.parse_args()
    email = args.email.lower()
    init_db()

    if args.command == "set-password":
        new_password = args.password or getpass.getpass("Enter NEW password: ")
        if len(new_password) < 6:
            print("[!] Password must be at least 6 characters.", file=sys.stderr)
            sys.exit(1)
        update_user(email, "password = ?", (hash_password(new_password),))
        print(f"[+] Password updated for user: {email}")
    elif args.command == "set-role":
        update_user(email, "role = ?", (args.role,))
        print(f"[+] Role of {email} set to {args.role}")
    else:
        update_user(email, "is_email_verified = 1, email_verification_token = NULL", ())
        print(f"[+] Email verified for user: {email}")


if __name__ == "__main__":
    main()
