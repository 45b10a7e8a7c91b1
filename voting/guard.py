"""Vote admission and one-vote-per-voter enforcement

VoteGuard decides whether a ballot may be cast and stores it. The only
step that guarantees a single record per (voter, item) is the conditional
insert in BallotRecordRepository.record_vote(); the existence check at the
top is a fast path that saves the item/voter reads for repeat attempts.

Rejections are ordinary outcomes returned as VoteResult. Store failures
propagate as DatabaseConnectionError / DatabaseError so callers never
mistake an outage for "already voted".
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from config import get_logger
from database.db import Database
from database.models import CollectionKind, ItemStatus
from exceptions import DocumentConflictError
from voting.eligibility import item_is_eligible
from voting.protocols import MetricsCollector, NullMetrics
from voting.status import effective_status

logger = get_logger(__name__).bind(component="vote_guard")

Clock = Callable[[], datetime]


def utc_clock() -> datetime:
    return datetime.now(timezone.utc)


class RejectionReason(str, Enum):
    ALREADY_VOTED = "already_voted"
    NOT_ACTIVE = "not_active"
    NOT_ELIGIBLE = "not_eligible"
    NOT_FOUND = "not_found"
    INVALID_SELECTION = "invalid_selection"


@dataclass(frozen=True)
class VoteResult:
    """Outcome of a cast attempt; reason is None when accepted"""

    accepted: bool
    reason: Optional[RejectionReason] = None
    message: str = ""
    record_id: Optional[str] = None

    @classmethod
    def ok(cls, record_id: str) -> "VoteResult":
        return cls(accepted=True, message="Vote recorded", record_id=record_id)

    @classmethod
    def rejected(cls, reason: RejectionReason, message: str) -> "VoteResult":
        return cls(accepted=False, reason=reason, message=message)

    def to_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "record_id": self.record_id,
        }


class VoteGuard:
    """Admits or rejects ballots and writes accepted ones

    Usage:
        guard = VoteGuard(db)
        result = await guard.cast_vote(voter_id, CollectionKind.POLL, poll_id, option_id)
        if not result.accepted:
            show(result.message)
    """

    def __init__(
        self,
        db: Database,
        metrics: Optional[MetricsCollector] = None,
        clock: Clock = utc_clock,
        honor_manual_closure: Optional[bool] = None,
        default_eligibility: Optional[bool] = None,
    ):
        """Initialize the guard

        Args:
            db: Database facade
            metrics: Optional metrics collector (NullMetrics when omitted)
            clock: Returns the current aware UTC time
            honor_manual_closure: Override CAMPUSVOTE_HONOR_MANUAL_CLOSURE
            default_eligibility: Override CAMPUSVOTE_DEFAULT_ELIGIBILITY
        """
        self.db = db
        self.metrics = metrics or NullMetrics()
        self.clock = clock
        self.honor_manual_closure = honor_manual_closure
        self.default_eligibility = default_eligibility

    async def has_voted(self, voter_id: str, kind: CollectionKind, item_id: str) -> bool:
        """Pure read: whether a ballot record exists for (voter, item)"""
        return await self.db.records.has_record(kind, item_id, voter_id)

    async def cast_vote(
        self,
        voter_id: str,
        kind: CollectionKind,
        item_id: str,
        selection_id: str,
        now: Optional[datetime] = None,
    ) -> VoteResult:
        """Cast one ballot for voter_id on item_id

        Raises:
            DatabaseConnectionError: Store unreachable (retryable)
            DatabaseError: Other store failures
        """
        kind = CollectionKind(kind)
        now = now or self.clock()
        noun = kind.value

        if await self.db.records.has_record(kind, item_id, voter_id):
            return self._reject(
                RejectionReason.ALREADY_VOTED,
                f"You have already voted in this {noun}",
                kind, item_id, voter_id,
            )

        item = await self.db.items.get_item(kind, item_id)
        if item is None:
            return self._reject(
                RejectionReason.NOT_FOUND,
                f"This {noun} no longer exists",
                kind, item_id, voter_id,
            )

        status = effective_status(item, now, self.honor_manual_closure)
        if status != ItemStatus.ACTIVE:
            return self._reject(
                RejectionReason.NOT_ACTIVE,
                _not_active_message(noun, status),
                kind, item_id, voter_id,
                status=status.value,
            )

        voter = await self.db.voters.get_voter(voter_id)
        if voter is None:
            return self._reject(
                RejectionReason.NOT_FOUND,
                "No voter profile found for this account",
                kind, item_id, voter_id,
            )
        if not voter.is_active:
            return self._reject(
                RejectionReason.NOT_ELIGIBLE,
                "Your account is not active for voting",
                kind, item_id, voter_id,
            )
        if not item_is_eligible(voter.faculty, item, self.default_eligibility):
            return self._reject(
                RejectionReason.NOT_ELIGIBLE,
                f"This {noun} is not available to your faculty",
                kind, item_id, voter_id,
                faculty=voter.faculty,
            )

        selection = await self.db.selections.get_selection(kind, selection_id)
        if selection is None or selection.item_id != item_id:
            return self._reject(
                RejectionReason.INVALID_SELECTION,
                f"The chosen {'candidate' if kind == CollectionKind.ELECTION else 'option'} "
                f"is not part of this {noun}",
                kind, item_id, voter_id,
                selection_id=selection_id,
            )

        try:
            record_id = await self.db.records.record_vote(
                kind,
                item_id=item_id,
                voter_id=voter_id,
                selection_id=selection_id,
                faculty=voter.faculty,
                timestamp=now,
            )
        except DocumentConflictError:
            # Lost the race to a concurrent cast by the same voter
            return self._reject(
                RejectionReason.ALREADY_VOTED,
                f"You have already voted in this {noun}",
                kind, item_id, voter_id,
                concurrent=True,
            )

        self.metrics.votes_cast.labels(kind=kind.value).inc()
        logger.info("vote accepted", kind=kind.value, item_id=item_id, voter_id=voter_id, record_id=record_id)
        return VoteResult.ok(record_id)

    def _reject(
        self,
        reason: RejectionReason,
        message: str,
        kind: CollectionKind,
        item_id: str,
        voter_id: str,
        **context,
    ) -> VoteResult:
        self.metrics.vote_rejections.labels(kind=kind.value, reason=reason.value).inc()
        logger.info(
            "vote rejected",
            reason=reason.value,
            kind=kind.value,
            item_id=item_id,
            voter_id=voter_id,
            **context,
        )
        return VoteResult.rejected(reason, message)


def _not_active_message(noun: str, status: ItemStatus) -> str:
    if status == ItemStatus.SCHEDULED:
        return f"This {noun} has not started yet"
    if status == ItemStatus.CLOSED:
        return f"This {noun} has ended"
    return f"This {noun} is not open for voting"
