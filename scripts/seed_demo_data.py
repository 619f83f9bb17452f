#!/usr/bin/env python3
"""
Seed a user's collection with weekly demo assessments.

Scores are random in 5..10 and every area gets a sample note. Run with:
    python scripts/seed_demo_data.py demo-user --count 12
"""

from __future__ import annotations

import argparse
import asyncio
import random
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from growth_tracker.core.logging import setup_logging
from growth_tracker.domain import Area, Assessment
from growth_tracker.infrastructure.db.session import dispose_engine, get_session_factory
from growth_tracker.infrastructure.repositories.assessment_store import SqlAssessmentStore

SAMPLE_NOTES = {
    Area.TECH: "Learning new frameworks and technologies.",
    Area.PERSONAL: "Working on mindfulness and exercise routine.",
    Area.BUSINESS: "Exploring new business opportunities.",
    Area.SOCIAL: "Building deeper connections with friends and family.",
}


def build_demo_assessments(
    user_id: str, count: int, *, rng: random.Random, now: datetime
) -> list[Assessment]:
    return [
        Assessment(
            id=f"demo-{index}",
            date=now - timedelta(weeks=index),
            scores={area: rng.randint(5, 10) for area in Area},
            notes=dict(SAMPLE_NOTES),
            user_id=user_id,
        )
        for index in range(count)
    ]


async def seed(user_id: str, count: int, seed_value: int | None) -> None:
    store = SqlAssessmentStore(get_session_factory())
    rng = random.Random(seed_value)
    try:
        for assessment in build_demo_assessments(
            user_id, count, rng=rng, now=datetime.now(UTC)
        ):
            saved = await store.create(user_id, assessment)
            print(f"Seeded {saved.id} dated {saved.date:%Y-%m-%d}")
    finally:
        await dispose_engine()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo assessments")
    parser.add_argument("user_id")
    parser.add_argument("--count", type=int, default=12)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    setup_logging()
    asyncio.run(seed(args.user_id, args.count, args.seed))


if __name__ == "__main__":
    main()
