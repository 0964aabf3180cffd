#!/usr/bin/env python3
"""
Database Seeding Script

Creates the billing package catalog and a demo organization with a
super-admin user for development.

Usage:
    DATABASE_URL=sqlite+aiosqlite:///./agentdesk.db python scripts/seed_database.py
"""

import asyncio
import os

from agentdesk_core.core.logging import setup_logging
from agentdesk_core.database.base import close_database, init_database
from agentdesk_core.database.seed import DEMO_ADMIN, DEMO_ORG, seed_all


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./agentdesk.db")


async def seed_database():
    """Main database seeding function."""
    print("\n=== AgentDesk Database Seeding ===\n")

    db = init_database(DATABASE_URL)

    # Production schemas come from Alembic; only create tables for SQLite
    if "sqlite" in db.url:
        await db.create_all()
        print("Database tables created/verified\n")

    try:
        async with db.session() as session:
            result = await seed_all(session)

        print("=" * 50)
        print("Database seeding completed successfully!")
        print("=" * 50)
        print(f"\nBilling packages: {', '.join(p.name for p in result.packages)}")
        print(f"System templates: {len(result.templates)}")
        print(f"Quick actions: {len(result.quick_actions)}")
        print("\nDemo caller headers:")
        print(f"  X-Organization-ID: {DEMO_ORG['id']}")
        print(f"  X-User-ID: {DEMO_ADMIN['id']}")
        print(f"  X-User-Role: {DEMO_ADMIN['role']}")
    finally:
        await close_database()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(seed_database())
