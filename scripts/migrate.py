#!/usr/bin/env python3
"""Database migration script - creates all tables."""

import asyncio

from dotenv import load_dotenv

load_dotenv()

from kitwallet.config import get_settings
from kitwallet.db.database import close_db, init_db


async def main():
    """Create the kit wallet tables."""
    settings = get_settings()

    print(f"Database URL: {settings.get_safe_dict()['database_url']}")
    print("Creating database tables...")

    try:
        await init_db()
        print("Database tables created successfully!")
    except Exception as e:
        print(f"Error creating tables: {e}")
        raise
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
