"""Base repository over the async document store

All repositories inherit from BaseRepository and share:
- One DocumentStore instance (no store per-repository)
- Collection layout lookup per ballot kind
- Logging infrastructure

Return Type Conventions
-----------------------
All repository methods follow these patterns for consistency:

    get_X(id) -> Optional[T]
        Single entity lookup by primary key.
        Returns None if entity not found.

    get_Xs(...) -> List[T]
        Multiple entity retrieval with filters.
        Returns empty list [] if none match.

    create_X(...) -> str
        Returns the new document ID.

    update_X(...) / delete_X(...) -> bool
        True if a document was changed, False if it did not exist.

Store errors (DatabaseConnectionError, DatabaseError) propagate unchanged.
"""

from typing import Union

from config import get_logger
from database.collections import CollectionLayout, layout_for
from database.models import CollectionKind
from database.store import DocumentStore

logger = get_logger(__name__).bind(component="repository")


class BaseRepository:
    """Base class for async document store repositories

    Design Principles:
    - Store is passed in, not created (shared across repositories)
    - Documents are converted to typed models at the repository boundary
    - All methods are async (no sync fallbacks)
    """

    def __init__(self, store: DocumentStore):
        """Initialize repository with shared document store

        Args:
            store: DocumentStore implementation (shared across all repositories)
        """
        self.store = store

    @staticmethod
    def _layout(kind: Union[CollectionKind, str]) -> CollectionLayout:
        return layout_for(kind)
