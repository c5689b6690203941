#!/usr/bin/env python3
"""
Register an account (and optionally its first page) directly in the database.

Usage:
  python scripts/add_user.py --email ana@example.com --name "Ana" [--password s3cret] [--slug ana-silva] [--admin]
"""
from __future__ import annotations

import argparse
import secrets
import sys

from linkpage.core.config import get_settings
from linkpage.core.security import hash_password
from linkpage.db.session import Database
from linkpage.domain.slugs import check_slug
from linkpage.repositories.sql_repository import SQLRepository


def gen_password(length: int = 12) -> str:
    return secrets.token_urlsafe(length)[:length]


def main() -> None:
    ap = argparse.ArgumentParser(description="Register an account in the LinkPage database")
    ap.add_argument("--email", required=True, help="Login email (ex.: ana@example.com)")
    ap.add_argument("--name", required=True, help="Display name")
    ap.add_argument("--password", help="Password (default: random)")
    ap.add_argument("--slug", help="Optional first page address (ex.: ana-silva)")
    ap.add_argument("--admin", action="store_true", help="Mark the account as admin")
    args = ap.parse_args()

    database = Database(get_settings().database_url)
    database.create_all()
    repo = SQLRepository(database)
    try:
        email = (args.email or "").strip().lower()
        if not email or "@" not in email:
            raise SystemExit("Invalid email")
        if repo.get_user_by_email(email):
            raise SystemExit(f"Email '{email}' is already registered")
        slug = ""
        if args.slug:
            candidate = check_slug(args.slug)
            if not candidate.eligible:
                raise SystemExit(f"Invalid slug: {candidate.error}")
            if repo.slug_exists(candidate.slug):
                raise SystemExit(f"Slug '{candidate.slug}' is already in use")
            slug = candidate.slug

        password = (args.password or "").strip() or gen_password()
        user = repo.create_user(args.name.strip(), email, hash_password(password), is_admin=args.admin)
        if slug:
            repo.insert_page(user.id, slug)
        print("OK: account created")
        print(f"  id: {user.id}")
        print(f"  email: {email}")
        print(f"  password: {password}")
        if slug:
            print(f"  page: /{slug}")
    finally:
        database.dispose()


if __name__ == "__main__":
    try:
        main()
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
