#!/usr/bin/env python3
"""
Seed Data Script for Sprint Prioritization Survey

Submits realistic survey answers through the same path the form uses:
- 6 respondents across two sprints
- a mix of high/medium/low focused prioritizations
- one resubmission to exercise the update path

Usage:
    python scripts/seed_data.py              # Add seed data
    python scripts/seed_data.py --clear      # Clear all data first
"""
import asyncio
import sys
import os
from datetime import datetime, timedelta, timezone
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sprint_survey.database import async_session, init_models
from sprint_survey.models.submission import Submission
from sprint_survey.services.form_builder import FormContext, collect_submission
from sprint_survey.services.repository import SubmissionQuery
from sprint_survey.services.submission_service import SubmissionService


# ==================== DATA DEFINITIONS ====================

# email -> (sprint, {question id: priority})
RESPONDENTS = [
    ("alice.sm@company.com", 23, {"question1": "high", "question2": "high", "question4": "high", "question5": "medium"}),
    ("bob.sm@company.com", 23, {"question2": "medium", "question3": "medium", "question6": "medium", "question8": "low"}),
    ("carol.po@company.com", 23, {"question1": "high", "question3": "medium", "question7": "low"}),
    ("emma.dev@company.com", 23, {"question4": "low", "question5": "low", "question6": "low", "question7": "medium"}),
    ("frank.dev@company.com", 24, {"question1": "high", "question2": "medium", "question3": "high", "question6": "medium", "question7": "high"}),
    ("grace.dev@company.com", 24, {"question2": "high", "question5": "medium", "question8": "medium"}),
]

# Changed answers submitted again under the same key
RESUBMISSION = ("carol.po@company.com", {"question1": "high", "question3": "high", "question7": "medium"})

USER_AGENT = "seed-data-script/1.0"


async def clear_all_data(session: AsyncSession):
    """Delete every stored submission"""
    print("\n🗑️  Clearing existing submissions...")
    await session.execute(delete(Submission))
    await session.commit()
    print("  ✓ Cleared")


async def create_submissions(session: AsyncSession, base_time: datetime):
    """Submit one prioritization per respondent"""
    print("\n📝 Creating submissions...")
    service = SubmissionService(session)
    timestamps = {}

    for offset, (email, sprint, priorities) in enumerate(RESPONDENTS):
        context = FormContext.load_default(sprint_number=sprint)
        answers = {qid: {"selected": True, "priority": level} for qid, level in priorities.items()}
        submitted_at = base_time + timedelta(minutes=offset)
        payload = collect_submission(context, email, answers, now=submitted_at, user_agent=USER_AGENT)

        outcome = await service.submit(payload, now=submitted_at)
        timestamps[email] = outcome.record["timestamp"]
        data = outcome.to_response()["data"]
        print(f"  ✓ {email}: {data['totalItems']} items, {data['totalHours']}h, "
              f"{data['totalPoints']} pts ({data['priorityProfile']})")

    return timestamps


async def resubmit(session: AsyncSession, timestamps):
    """Send changed answers for an existing key"""
    email, priorities = RESUBMISSION
    print(f"\n🔁 Resubmitting for {email}...")

    service = SubmissionService(session)
    context = FormContext.load_default()
    answers = {qid: {"selected": True, "priority": level} for qid, level in priorities.items()}
    payload = collect_submission(context, email, answers, user_agent=USER_AGENT)
    payload["timestamp"] = timestamps[email]

    outcome = await service.submit(payload)
    print(f"  ✓ Updated: {outcome.updated}, profile now {outcome.record['priorityProfile']}")


# ==================== MAIN ====================

async def seed_database(clear_first: bool = False):
    """Main seed function"""
    print("=" * 60)
    print("🌱 Sprint Prioritization Survey - Database Seeding")
    print("=" * 60)

    await init_models()

    async with async_session() as session:
        if clear_first:
            await clear_all_data(session)

        timestamps = await create_submissions(session, datetime.now(timezone.utc))
        await resubmit(session, timestamps)

        result = await SubmissionService(session).query(SubmissionQuery(limit=100))

    stats = result["stats"]
    print("\n" + "=" * 60)
    print("✅ Database seeding complete!")
    print("=" * 60)
    print("\n📊 Summary:")
    print(f"  Submissions: {stats['totalSubmissions']}")
    print(f"  Average points: {stats['averageTotalPoints']}")
    print(f"  Priority totals: {stats['priorityDistribution']}")
    print(f"  Profiles: {stats['profileDistribution']}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed Sprint Prioritization Survey database")
    parser.add_argument("--clear", action="store_true", help="Clear all data before seeding")
    args = parser.parse_args()

    asyncio.run(seed_database(clear_first=args.clear))
