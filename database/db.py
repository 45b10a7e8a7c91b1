"""Database facade with repository pattern

Wires one DocumentStore to the typed repositories. The voting core and the
HTTP layer only ever see a Database; which store backs it is decided here.
"""

from typing import Optional

from config import config, get_logger
from database.db_postgres import PostgresDocumentStore
from database.repositories_async import (
    BallotItemRepository,
    BallotRecordRepository,
    SelectionRepository,
    VoterRepository,
)
from database.store import DocumentStore, MemoryDocumentStore

logger = get_logger(__name__).bind(component="database")


class Database:
    """Async document store with repository pattern

    Usage:
        db = await Database.create()
        item = await db.items.get_item(CollectionKind.ELECTION, "abc123")
        records = await db.records.get_records_for_item(CollectionKind.ELECTION, "abc123")
        await db.close()
    """

    store: DocumentStore

    # Repository attributes
    voters: VoterRepository
    items: BallotItemRepository
    selections: SelectionRepository
    records: BallotRecordRepository

    def __init__(self, store: DocumentStore):
        """Initialize with a document store and repositories

        Use Database.create() or Database.in_memory() instead of direct instantiation.
        """
        self.store = store

        # Instantiate all repositories with shared store
        self.voters = VoterRepository(store)
        self.items = BallotItemRepository(store)
        self.selections = SelectionRepository(store)
        self.records = BallotRecordRepository(store)

        logger.info("database initialized with repositories", store=type(store).__name__)

    @classmethod
    async def create(
        cls,
        dsn: Optional[str] = None,
        min_size: int = config.POSTGRES_POOL_MIN_SIZE,
        max_size: int = config.POSTGRES_POOL_MAX_SIZE,
    ) -> "Database":
        """Create database backed by PostgreSQL

        Raises:
            DatabaseConnectionError: If the pool cannot be created
        """
        store = await PostgresDocumentStore.create(dsn, min_size=min_size, max_size=max_size)
        return cls(store)

    @classmethod
    def in_memory(cls) -> "Database":
        """Create database backed by the in-process store (development, tests)"""
        return cls(MemoryDocumentStore())

    @classmethod
    async def from_config(cls) -> "Database":
        """Postgres when CAMPUSVOTE_USE_POSTGRES is set, otherwise in-memory"""
        if config.USE_POSTGRES:
            db = await cls.create()
            await db.init_schema()
            return db
        logger.warning("postgres disabled, using in-memory store (data is not persisted)")
        return cls.in_memory()

    async def init_schema(self) -> None:
        """Create backing tables when the store needs them (idempotent)"""
        init_schema = getattr(self.store, "init_schema", None)
        if init_schema is not None:
            await init_schema()

    async def close(self) -> None:
        await self.store.close()
