"""Shared fixtures: in-memory database, fixed clock and a seeding helper"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

import pytest

from database.db import Database
from database.models import CollectionKind, ScopeType, Voter
from voting.service import VotingService

# Scenario window: 2025-01-01 .. 2025-01-10, "now" in the middle
START = datetime(2025, 1, 1, tzinfo=timezone.utc)
END = datetime(2025, 1, 10, tzinfo=timezone.utc)
NOW = datetime(2025, 1, 5, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


class Seeder:
    """Writes test documents through the repositories"""

    def __init__(self, db: Database):
        self.db = db

    async def voter(
        self,
        voter_id: str = "u1",
        faculty: Optional[str] = "Engineering",
        is_active: bool = True,
    ) -> str:
        return await self.db.voters.create_voter(
            Voter(
                id=voter_id,
                university_id=f"S-{voter_id}",
                name=f"Student {voter_id}",
                faculty=faculty,
                is_active=is_active,
            )
        )

    async def item(
        self,
        kind: CollectionKind = CollectionKind.ELECTION,
        labels: Sequence[str] = ("A", "B"),
        scope_type: str = ScopeType.ALL_FACULTIES.value,
        faculties: Sequence[str] = (),
        start: datetime = START,
        end: datetime = END,
        status: str = "active",
        title: str = "Student Council",
    ) -> tuple:
        """Create an item and its selections; returns (item_id, [selection_ids])"""
        item_id = await self.db.items.create_item(
            kind,
            title=title,
            start_date=start,
            end_date=end,
            scope_type=scope_type,
            scope_faculties=list(faculties),
            status=status,
        )
        selection_ids: List[str] = []
        for index, label in enumerate(labels):
            order = index if kind == CollectionKind.POLL else None
            selection_ids.append(
                await self.db.selections.create_selection(kind, item_id, label, order=order)
            )
        return item_id, selection_ids

    async def votes(
        self,
        kind: CollectionKind,
        item_id: str,
        selection_id: str,
        count: int,
        prefix: str = "v",
    ) -> None:
        """Store records directly (bypasses eligibility; for tally tests)"""
        for n in range(count):
            await self.db.records.record_vote(
                kind,
                item_id=item_id,
                voter_id=f"{prefix}{selection_id}-{n}",
                selection_id=selection_id,
                faculty="Engineering",
                timestamp=NOW - timedelta(hours=1),
            )


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def db() -> Database:
    return Database.in_memory()


@pytest.fixture
def seeder(db) -> Seeder:
    return Seeder(db)


@pytest.fixture
def service(db) -> VotingService:
    return VotingService.build(db, clock=fixed_clock)
