#!/usr/bin/env python3
"""Write a user's assessment export file into EXPORT_DIR."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from growth_tracker.core.config import get_settings
from growth_tracker.core.logging import setup_logging
from growth_tracker.domain import User
from growth_tracker.domain.services.export import DirectoryFileSink
from growth_tracker.domain.services.identity import IdentityProvider
from growth_tracker.domain.services.manager import AssessmentManager
from growth_tracker.infrastructure.db.session import dispose_engine, get_session_factory
from growth_tracker.infrastructure.repositories.assessment_store import SqlAssessmentStore


async def export(user_id: str, directory: str) -> None:
    identity = IdentityProvider(User(user_id=user_id))
    manager = AssessmentManager(
        identity=identity,
        store=SqlAssessmentStore(get_session_factory()),
        file_sink=DirectoryFileSink(directory),
    )
    try:
        await manager.init()
        exported = manager.export_data()
        print(f"Exported {len(manager.assessments)} assessment(s) to {exported.filename}")
    finally:
        manager.teardown()
        await dispose_engine()


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("user_id")
    parser.add_argument("--dir", default=settings.export_dir)
    args = parser.parse_args()

    setup_logging()
    asyncio.run(export(args.user_id, args.dir))


if __name__ == "__main__":
    main()
