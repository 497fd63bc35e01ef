# scripts/init_db.py
"""
Script to initialize database tables. Run from project root:
    python scripts/init_db.py
"""
import asyncio

from app.infrastructure.db.session import create_tables
import app.infrastructure.models  # noqa: F401  registers tables on Base

def init():
    asyncio.run(create_tables())
    print("DB initialized")

if __name__ == "__main__":
    init()
