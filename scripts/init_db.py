#!/usr/bin/env python3
"""
Initialize database with the submissions table
"""
import asyncio
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sprint_survey.config import settings
from sprint_survey.database import init_models
from sprint_survey.models.base import Base
from sprint_survey.models.submission import Submission  # noqa: F401


async def init_database():
    """Create all tables"""
    print("🗄️  Initializing database...")
    print(f"Database: {settings.database_url}")
    print(f"Creating tables: {', '.join([t.name for t in Base.metadata.sorted_tables])}")

    await init_models()

    print("✅ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_database())
