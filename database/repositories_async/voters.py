"""Async VoterRepository for the Users collection

Voter documents are keyed by the identity provider's uid, so the same id
appears on every ballot record the voter casts.
"""

from typing import Any, Dict, List, Optional

from config import get_logger
from database.collections import USERS
from database.models import Voter
from database.repositories_async.base import BaseRepository
from database.repositories_async.helpers import build_voter, utcnow

logger = get_logger(__name__).bind(component="voter_repository")


class VoterRepository(BaseRepository):
    """Repository for voter accounts

    Provides:
    - Lookup by uid
    - Registration keyed by uid (conflict if already registered)
    - Profile and active-flag updates
    - Faculty-filtered listing
    """

    async def get_voter(self, voter_id: str) -> Optional[Voter]:
        doc = await self.store.get_by_id(USERS, voter_id)
        return build_voter(doc) if doc else None

    async def create_voter(self, voter: Voter) -> str:
        """Register a voter under their uid

        Raises:
            DocumentConflictError: If a voter with this uid already exists
        """
        now = utcnow().isoformat()
        fields = voter.to_dict()
        fields.pop("id")
        fields["created_at"] = now
        fields["updated_at"] = now

        voter_id = await self.store.insert_if_absent(USERS, voter.id, fields)
        logger.info("voter registered", voter_id=voter_id, faculty=voter.faculty)
        return voter_id

    async def update_voter(self, voter_id: str, fields: Dict[str, Any]) -> bool:
        """Merge profile fields into an existing voter document"""
        payload = dict(fields)
        payload["updated_at"] = utcnow().isoformat()
        updated = await self.store.update(USERS, voter_id, payload)
        if updated:
            logger.info("voter updated", voter_id=voter_id, fields=sorted(fields))
        return updated

    async def set_active(self, voter_id: str, is_active: bool) -> bool:
        return await self.update_voter(voter_id, {"is_active": is_active})

    async def list_voters(self, faculty: Optional[str] = None) -> List[Voter]:
        filters = {"faculty": faculty} if faculty else None
        docs = await self.store.query(USERS, filters)
        return [build_voter(doc) for doc in docs]
