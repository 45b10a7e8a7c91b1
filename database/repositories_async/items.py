"""Async BallotItemRepository for elections and polls

Both kinds go through the same methods; the CollectionLayout for the kind
decides which collection and which field names are used.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from config import get_logger
from database.models import BallotItem, CollectionKind
from database.repositories_async.base import BaseRepository
from database.repositories_async.helpers import build_ballot_item, item_fields, utcnow

logger = get_logger(__name__).bind(component="item_repository")


class BallotItemRepository(BaseRepository):
    """Repository for ballot item operations

    Provides:
    - Single item retrieval
    - Listing all items of a kind (optionally by stored status)
    - Create/update/delete for the admin surface
    """

    async def get_item(self, kind: CollectionKind, item_id: str) -> Optional[BallotItem]:
        layout = self._layout(kind)
        doc = await self.store.get_by_id(layout.items, item_id)
        return build_ballot_item(doc, layout) if doc else None

    async def list_items(
        self, kind: CollectionKind, status: Optional[str] = None
    ) -> List[BallotItem]:
        """All items of a kind in insertion order"""
        layout = self._layout(kind)
        filters = {"status": status} if status else None
        docs = await self.store.query(layout.items, filters)
        return [build_ballot_item(doc, layout) for doc in docs]

    async def create_item(
        self,
        kind: CollectionKind,
        title: str,
        start_date: datetime,
        end_date: datetime,
        scope_type: str,
        scope_faculties: List[str],
        description: Optional[str] = None,
        status: str = "draft",
    ) -> str:
        layout = self._layout(kind)
        now = utcnow().isoformat()
        fields = item_fields(
            layout,
            title=title,
            description=description,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            scope_type=scope_type,
            scope_faculties=list(scope_faculties),
            status=status,
            created_at=now,
            updated_at=now,
        )
        item_id = await self.store.insert(layout.items, fields)
        logger.info("item created", kind=layout.kind.value, item_id=item_id, status=status)
        return item_id

    async def update_item(
        self, kind: CollectionKind, item_id: str, changes: Dict[str, Any]
    ) -> bool:
        """Apply model-level field changes (datetimes are stored as ISO strings)"""
        layout = self._layout(kind)
        values = {
            key: value.isoformat() if isinstance(value, datetime) else value
            for key, value in changes.items()
        }
        values["updated_at"] = utcnow().isoformat()
        updated = await self.store.update(layout.items, item_id, item_fields(layout, **values))
        if updated:
            logger.info("item updated", kind=layout.kind.value, item_id=item_id, fields=sorted(changes))
        return updated

    async def delete_item(self, kind: CollectionKind, item_id: str) -> bool:
        layout = self._layout(kind)
        deleted = await self.store.delete(layout.items, item_id)
        if deleted:
            logger.info("item deleted", kind=layout.kind.value, item_id=item_id)
        return deleted
