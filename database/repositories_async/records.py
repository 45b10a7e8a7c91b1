"""Async BallotRecordRepository for Votes and PollVotes

Records are write-once. The record id is derived from (item, voter), so
record_vote() is a single conditional insert and a second vote by the same
voter on the same item can never be stored, however the calls interleave.
"""

from datetime import datetime
from typing import List, Optional

from config import get_logger
from database.id_generation import generate_ballot_record_id
from database.models import BallotRecord, CollectionKind
from database.repositories_async.base import BaseRepository
from database.repositories_async.helpers import build_ballot_record

logger = get_logger(__name__).bind(component="record_repository")


class BallotRecordRepository(BaseRepository):
    """Repository for ballot records

    Provides:
    - Atomic one-per-voter record insertion
    - Existence check for (item, voter)
    - All records of an item (for tallying)
    """

    async def record_vote(
        self,
        kind: CollectionKind,
        item_id: str,
        voter_id: str,
        selection_id: str,
        faculty: Optional[str],
        timestamp: datetime,
    ) -> str:
        """Store a ballot record; returns the record id

        Raises:
            DocumentConflictError: The voter already has a record for this item
        """
        layout = self._layout(kind)
        record_id = generate_ballot_record_id(layout.kind.value, item_id, voter_id)
        fields = {
            layout.item_fk: item_id,
            layout.selection_fk: selection_id,
            "user_id": voter_id,
            "faculty": faculty,
            "timestamp": timestamp.isoformat(),
        }
        return await self.store.insert_if_absent(layout.records, record_id, fields)

    async def get_record(
        self, kind: CollectionKind, item_id: str, voter_id: str
    ) -> Optional[BallotRecord]:
        layout = self._layout(kind)
        record_id = generate_ballot_record_id(layout.kind.value, item_id, voter_id)
        doc = await self.store.get_by_id(layout.records, record_id)
        return build_ballot_record(doc, layout) if doc else None

    async def has_record(self, kind: CollectionKind, item_id: str, voter_id: str) -> bool:
        return await self.get_record(kind, item_id, voter_id) is not None

    async def get_records_for_item(self, kind: CollectionKind, item_id: str) -> List[BallotRecord]:
        layout = self._layout(kind)
        docs = await self.store.query(layout.records, {layout.item_fk: item_id})
        return [build_ballot_record(doc, layout) for doc in docs]

    async def get_all_records(self, kind: CollectionKind) -> List[BallotRecord]:
        layout = self._layout(kind)
        docs = await self.store.query(layout.records)
        return [build_ballot_record(doc, layout) for doc in docs]
