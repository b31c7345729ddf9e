#!/usr/bin/env python3
"""
Delete submissions whose retention period (ttl) has passed

Usage:
    python scripts/purge_expired.py
"""
import asyncio
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sprint_survey.database import async_session
from sprint_survey.services.repository import SubmissionRepository
from sprint_survey.utils.logging import setup_logging


async def purge_expired():
    async with async_session() as session:
        repository = SubmissionRepository(session)
        removed = await repository.purge_expired()
        remaining = await repository.count()

    print(f"🧹 Removed {removed} expired submissions, {remaining} remain")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(purge_expired())
