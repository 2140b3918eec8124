#!/usr/bin/env python3
"""CLI script to create a user or a contact.

Usage:
    uv run python scripts/create_user.py --email admin@example.com --password changeme \
        --first-name Ada --last-name Lovelace --role superAdmin
    uv run python scripts/create_user.py --contact --first-name Grace --last-name Hopper \
        --email grace@example.com

Connects directly to the database using DATABASE_URL from environment or .env file.
Creates missing tables first, so it also works against a fresh SQLite file.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

# Ensure project root is on sys.path so we can import src.meeting_history
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

# Load .env from project root
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


async def create(args: argparse.Namespace) -> None:
    """Insert the requested user or contact row."""
    from sqlalchemy.ext.asyncio import AsyncSession

    from src.meeting_history.core.database import close_db, get_engine, init_db
    from src.meeting_history.core.security import hash_password
    from src.meeting_history.models.identity import Contact, User

    await init_db()

    async with AsyncSession(get_engine(), expire_on_commit=False) as session:
        if args.contact:
            row = Contact(
                first_name=args.first_name,
                last_name=args.last_name,
                email=args.email,
            )
        else:
            row = User(
                email=args.email,
                first_name=args.first_name,
                last_name=args.last_name,
                role=args.role,
                is_active=True,
                hashed_password=hash_password(args.password),
            )
        session.add(row)
        await session.commit()

    kind = "Contact" if args.contact else "User"
    print(f"{kind} created:")
    print(f"  ID:    {row.id}")
    print(f"  Name:  {args.first_name or ''} {args.last_name or ''}".rstrip())
    if args.email:
        print(f"  Email: {args.email}")
    if not args.contact:
        print(f"  Role:  {args.role}")

    await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a user or contact")
    parser.add_argument("--contact", action="store_true", help="Create a contact instead of a user")
    parser.add_argument("--email", default=None, help="Email address (required for users)")
    parser.add_argument("--password", default=None, help="Password (required for users)")
    parser.add_argument("--first-name", default=None, help="First name")
    parser.add_argument("--last-name", default=None, help="Last name")
    parser.add_argument("--role", default="user", help="User role, e.g. superAdmin")
    args = parser.parse_args()

    if not args.contact and not (args.email and args.password):
        parser.error("--email and --password are required when creating a user")

    asyncio.run(create(args))


if __name__ == "__main__":
    main()
