"""VotingService - the operations the mobile and admin clients consume

Everything the HTTP layer and the CLI need goes through this facade:
listing items for a voter, casting and checking votes, results with the
visibility policy applied, and participation counts for the dashboard.
Session state (current voter, faculty) is always passed in explicitly.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from config import get_logger
from database.db import Database
from database.models import BallotItem, CollectionKind, ItemStatus, Selection
from exceptions import NotFoundError, ResultsNotAvailableError
from voting.eligibility import item_is_eligible
from voting.guard import Clock, VoteGuard, VoteResult, utc_clock
from voting.protocols import MetricsCollector, NullMetrics
from voting.results import ResultAggregator, TallyResult
from voting.status import effective_status

logger = get_logger(__name__).bind(component="voting_service")

# Listing order: open items first, then upcoming, then finished
STATUS_ORDER = {
    ItemStatus.ACTIVE: 0,
    ItemStatus.SCHEDULED: 1,
    ItemStatus.CLOSED: 2,
}


class Audience(str, Enum):
    VOTER = "voter"
    ADMIN = "admin"


@dataclass(frozen=True)
class ItemView:
    """Ballot item paired with the status it has right now"""

    item: BallotItem
    computed_status: ItemStatus

    def to_dict(self) -> dict:
        data = self.item.to_dict()
        data["computed_status"] = self.computed_status.value
        return data


class VotingService:
    """Facade over VoteGuard, ResultAggregator and the repositories

    Usage:
        service = VotingService.build(db)
        items = await service.list_eligible_items("Engineering", CollectionKind.ELECTION)
        result = await service.cast_vote(uid, CollectionKind.ELECTION, item_id, candidate_id)
    """

    def __init__(
        self,
        db: Database,
        guard: VoteGuard,
        aggregator: ResultAggregator,
        clock: Clock = utc_clock,
        honor_manual_closure: Optional[bool] = None,
        default_eligibility: Optional[bool] = None,
    ):
        self.db = db
        self.guard = guard
        self.aggregator = aggregator
        self.clock = clock
        self.honor_manual_closure = honor_manual_closure
        self.default_eligibility = default_eligibility

    @classmethod
    def build(
        cls,
        db: Database,
        metrics: Optional[MetricsCollector] = None,
        clock: Clock = utc_clock,
        honor_manual_closure: Optional[bool] = None,
        default_eligibility: Optional[bool] = None,
    ) -> "VotingService":
        """Wire guard and aggregator over one database with shared settings"""
        metrics = metrics or NullMetrics()
        guard = VoteGuard(
            db,
            metrics=metrics,
            clock=clock,
            honor_manual_closure=honor_manual_closure,
            default_eligibility=default_eligibility,
        )
        aggregator = ResultAggregator(db, metrics=metrics)
        return cls(
            db,
            guard,
            aggregator,
            clock=clock,
            honor_manual_closure=honor_manual_closure,
            default_eligibility=default_eligibility,
        )

    def status_of(self, item: BallotItem, now: Optional[datetime] = None) -> ItemStatus:
        return effective_status(item, now or self.clock(), self.honor_manual_closure)

    async def list_eligible_items(
        self,
        voter_faculty: Optional[str],
        kind: CollectionKind,
        now: Optional[datetime] = None,
    ) -> List[ItemView]:
        """Published items of a kind the voter's faculty may see

        Drafts are excluded. Sorted active, scheduled, closed, then by
        start date (earliest first).
        """
        now = now or self.clock()
        items = await self.db.items.list_items(kind)

        views = []
        for item in items:
            status = self.status_of(item, now)
            if status == ItemStatus.DRAFT:
                continue
            if not item_is_eligible(voter_faculty, item, self.default_eligibility):
                continue
            views.append(ItemView(item=item, computed_status=status))

        views.sort(key=lambda v: (STATUS_ORDER[v.computed_status], v.item.start_date, v.item.seq))
        return views

    async def get_item(
        self, kind: CollectionKind, item_id: str, now: Optional[datetime] = None
    ) -> ItemView:
        """Raises NotFoundError if the item does not exist"""
        kind = CollectionKind(kind)
        item = await self.db.items.get_item(kind, item_id)
        if item is None:
            raise NotFoundError(
                f"{kind.value.capitalize()} not found", entity=kind.value, entity_id=item_id
            )
        return ItemView(item=item, computed_status=self.status_of(item, now))

    async def get_visible_item(
        self,
        voter_faculty: Optional[str],
        kind: CollectionKind,
        item_id: str,
        now: Optional[datetime] = None,
    ) -> ItemView:
        """Item as a voter of voter_faculty may see it

        Drafts and items outside the voter's faculty scope are reported as
        missing, the same way list_eligible_items leaves them out.

        Raises:
            NotFoundError: Missing, unpublished, or not visible to this faculty
        """
        view = await self.get_item(kind, item_id, now)
        hidden = view.computed_status == ItemStatus.DRAFT or not item_is_eligible(
            voter_faculty, view.item, self.default_eligibility
        )
        if hidden:
            kind = CollectionKind(kind)
            raise NotFoundError(
                f"{kind.value.capitalize()} not found", entity=kind.value, entity_id=item_id
            )
        return view

    async def get_selections(
        self, voter_faculty: Optional[str], kind: CollectionKind, item_id: str
    ) -> List[Selection]:
        """Candidates or options of a visible item in display order

        Raises:
            NotFoundError: If the item does not exist or is hidden from the voter
        """
        await self.get_visible_item(voter_faculty, kind, item_id)
        return await self.db.selections.get_selections_for_item(kind, item_id)

    async def cast_vote(
        self,
        voter_id: str,
        kind: CollectionKind,
        item_id: str,
        selection_id: str,
    ) -> VoteResult:
        return await self.guard.cast_vote(voter_id, kind, item_id, selection_id, now=self.clock())

    async def has_voted(self, voter_id: str, kind: CollectionKind, item_id: str) -> bool:
        return await self.guard.has_voted(voter_id, kind, item_id)

    async def get_results(
        self,
        kind: CollectionKind,
        item_id: str,
        audience: Audience = Audience.VOTER,
        voter_faculty: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TallyResult:
        """Tally with visibility policy applied

        Voters see results only for items visible to their faculty, and only
        once the item is closed; admins see live tallies of any item.

        Raises:
            NotFoundError: If the item does not exist (or is hidden from the voter)
            ResultsNotAvailableError: Voter audience and item not closed yet
        """
        if Audience(audience) == Audience.VOTER:
            view = await self.get_visible_item(voter_faculty, kind, item_id, now)
            if view.computed_status != ItemStatus.CLOSED:
                raise ResultsNotAvailableError(
                    "Results will be available after voting closes",
                    item_id=item_id,
                    status=view.computed_status.value,
                )
        return await self.aggregator.aggregate(kind, item_id)

    async def participation_stats(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Counts shown on the admin dashboard"""
        now = now or self.clock()
        elections, polls, election_records, poll_records = await asyncio.gather(
            self.db.items.list_items(CollectionKind.ELECTION),
            self.db.items.list_items(CollectionKind.POLL),
            self.db.records.get_all_records(CollectionKind.ELECTION),
            self.db.records.get_all_records(CollectionKind.POLL),
        )

        def count_active(items: List[BallotItem]) -> int:
            return sum(1 for item in items if self.status_of(item, now) == ItemStatus.ACTIVE)

        voters = {r.voter_id for r in election_records} | {r.voter_id for r in poll_records}
        return {
            "active_elections": count_active(elections),
            "active_polls": count_active(polls),
            "total_votes": len(election_records) + len(poll_records),
            "unique_voters": len(voters),
        }
