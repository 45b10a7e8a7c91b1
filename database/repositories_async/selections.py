"""Async SelectionRepository for candidates and poll options"""

from typing import List, Optional

from config import get_logger
from database.models import CollectionKind, Selection
from database.repositories_async.base import BaseRepository
from database.repositories_async.helpers import build_selection, selection_fields

logger = get_logger(__name__).bind(component="selection_repository")


def display_order(selection: Selection) -> tuple:
    """Explicit order first, then insertion order, then id"""
    has_order = selection.order is not None
    return (0 if has_order else 1, selection.order if has_order else 0, selection.seq, selection.id)


class SelectionRepository(BaseRepository):
    """Repository for the selections offered by a ballot item

    Provides:
    - Selections of an item in display order
    - Single selection retrieval
    - Create/delete for the admin surface
    """

    async def get_selection(self, kind: CollectionKind, selection_id: str) -> Optional[Selection]:
        layout = self._layout(kind)
        doc = await self.store.get_by_id(layout.selections, selection_id)
        return build_selection(doc, layout) if doc else None

    async def get_selections_for_item(self, kind: CollectionKind, item_id: str) -> List[Selection]:
        layout = self._layout(kind)
        docs = await self.store.query(layout.selections, {layout.item_fk: item_id})
        selections = [build_selection(doc, layout) for doc in docs]
        selections.sort(key=display_order)
        return selections

    async def create_selection(
        self,
        kind: CollectionKind,
        item_id: str,
        label: str,
        order: Optional[int] = None,
        faculty: Optional[str] = None,
        bio: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> str:
        layout = self._layout(kind)
        fields = selection_fields(
            layout, item_id, label,
            order=order, faculty=faculty, bio=bio, photo_url=photo_url,
        )
        selection_id = await self.store.insert(layout.selections, fields)
        logger.info("selection created", kind=layout.kind.value, item_id=item_id, selection_id=selection_id)
        return selection_id

    async def delete_selection(self, kind: CollectionKind, selection_id: str) -> bool:
        layout = self._layout(kind)
        return await self.store.delete(layout.selections, selection_id)

    async def delete_selections_for_item(self, kind: CollectionKind, item_id: str) -> int:
        """Remove every selection of an item; returns how many were removed"""
        layout = self._layout(kind)
        docs = await self.store.query(layout.selections, {layout.item_fk: item_id})
        removed = 0
        for doc in docs:
            if await self.store.delete(layout.selections, doc.id):
                removed += 1
        return removed
