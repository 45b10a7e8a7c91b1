"""PostgreSQL Document Store

Stores every collection in one JSONB table keyed by (collection, id).
The conditional insert used for ballot records is a single
INSERT ... ON CONFLICT DO NOTHING statement, so the uniqueness of
(item, voter) is enforced by the primary key rather than by a prior read.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, List, Mapping, Optional

import asyncpg

from config import config, get_logger
from database.id_generation import generate_document_id
from database.store import Document, Filters
from exceptions import DatabaseConnectionError, DatabaseError, DocumentConflictError

logger = get_logger(__name__).bind(component="database_postgres")

SCHEMA_PATH = Path(__file__).parent / "schema_postgres.sql"

# Failures worth retrying: the statement never reached (or never returned
# from) a healthy server.
_TRANSIENT_ERRORS = (
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.CannotConnectNowError,
    asyncpg.exceptions.TooManyConnectionsError,
    asyncpg.InterfaceError,
    asyncio.TimeoutError,
    ConnectionError,
    OSError,
)


def _jsonb_encoder(obj):
    """JSONB encoder with datetime and Pydantic model serialization"""
    def default(o):
        if isinstance(o, datetime):
            return o.isoformat()
        if hasattr(o, 'model_dump'):
            return o.model_dump()
        if hasattr(o, 'value'):
            return o.value
        raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")

    return json.dumps(obj, default=default)


def _as_jsonb_text(value) -> str:
    """Render a scalar the way data->>key returns it: strings bare, the rest as JSON"""
    if hasattr(value, "value"):
        value = value.value
    if isinstance(value, str):
        return value
    return json.dumps(value)


class PostgresDocumentStore:
    """Async PostgreSQL implementation of the DocumentStore protocol

    Usage:
        store = await PostgresDocumentStore.create()
        await store.init_schema()
        doc_id = await store.insert("Elections", {...})
        await store.close()
    """

    def __init__(self, pool: asyncpg.Pool):
        """Use PostgresDocumentStore.create() instead of direct instantiation."""
        self.pool = pool

    @classmethod
    async def create(
        cls,
        dsn: Optional[str] = None,
        min_size: int = config.POSTGRES_POOL_MIN_SIZE,
        max_size: int = config.POSTGRES_POOL_MAX_SIZE,
    ) -> "PostgresDocumentStore":
        """Create store with connection pool

        Args:
            dsn: PostgreSQL connection string (defaults to config.get_postgres_dsn())
            min_size: Minimum pool size
            max_size: Maximum pool size
        """
        if dsn is None:
            dsn = config.get_postgres_dsn()

        async def init_connection(conn):
            """Initialize connection with JSONB codec for automatic serialization"""
            await conn.set_type_codec(
                'jsonb',
                encoder=_jsonb_encoder,
                decoder=json.loads,
                schema='pg_catalog'
            )

        try:
            pool = await asyncpg.create_pool(
                dsn,
                min_size=min_size,
                max_size=max_size,
                command_timeout=config.POSTGRES_COMMAND_TIMEOUT,
                init=init_connection,
            )
            logger.info("connection pool created", min_size=min_size, max_size=max_size)
            return cls(pool)
        except (asyncpg.PostgresError, OSError, ConnectionError) as e:
            logger.error("failed to create connection pool", error=str(e))
            raise DatabaseConnectionError(f"Failed to connect to PostgreSQL: {e}")

    async def close(self) -> None:
        """Close connection pool"""
        await self.pool.close()
        logger.info("connection pool closed")

    async def init_schema(self) -> None:
        """Create the documents table and indexes (idempotent)"""
        if not SCHEMA_PATH.exists():
            raise FileNotFoundError(f"Schema file not found: {SCHEMA_PATH}")

        async with self._translate_errors("init_schema"):
            async with self.pool.acquire() as conn:
                await conn.execute(SCHEMA_PATH.read_text())

        logger.info("schema initialized")

    @asynccontextmanager
    async def _translate_errors(self, operation: str, collection: Optional[str] = None):
        """Map driver exceptions onto the campusvote hierarchy"""
        try:
            yield
        except _TRANSIENT_ERRORS as e:
            logger.warning(
                "transient store failure",
                operation=operation,
                collection=collection,
                error=str(e),
            )
            raise DatabaseConnectionError(
                f"Document store unavailable during {operation}: {e}",
                {"operation": operation, "collection": collection},
            ) from e
        except asyncpg.PostgresError as e:
            logger.error("store operation failed", operation=operation, collection=collection, error=str(e))
            raise DatabaseError(
                f"Document store error during {operation}: {e}",
                {"operation": operation, "collection": collection},
            ) from e

    @staticmethod
    def _build_where(collection: str, filters: Filters) -> tuple[str, list]:
        """WHERE clause for equality (JSONB containment) and membership filters

        Membership values are compared as text against data->>key, so
        non-string scalars are matched by their JSON spelling (true, 3).
        A None member also matches a missing or null field.
        """
        clauses = ["collection = $1"]
        args: List[Any] = [collection]

        equality = {}
        for key, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set, frozenset)):
                args.append(key)
                args.append([_as_jsonb_text(v) for v in value if v is not None])
                clause = f"data->>(${len(args) - 1}::text) = ANY(${len(args)}::text[])"
                if any(v is None for v in value):
                    clause = f"({clause} OR data->>(${len(args) - 1}::text) IS NULL)"
                clauses.append(clause)
            else:
                equality[key] = value

        if equality:
            args.append(equality)
            clauses.append(f"data @> ${len(args)}::jsonb")

        return " AND ".join(clauses), args

    async def query(self, collection: str, filters: Filters = None) -> List[Document]:
        where, args = self._build_where(collection, filters)
        async with self._translate_errors("query", collection):
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT id, data, seq FROM documents WHERE {where} ORDER BY seq",
                    *args,
                )
        return [Document(id=row["id"], data=row["data"], seq=row["seq"]) for row in rows]

    async def get_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        async with self._translate_errors("get_by_id", collection):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT id, data, seq FROM documents WHERE collection = $1 AND id = $2",
                    collection,
                    doc_id,
                )
        if not row:
            return None
        return Document(id=row["id"], data=row["data"], seq=row["seq"])

    async def insert(
        self, collection: str, fields: Mapping[str, Any], doc_id: Optional[str] = None
    ) -> str:
        """Insert (or overwrite, when doc_id names an existing document)"""
        if doc_id is None:
            doc_id = generate_document_id()
        async with self._translate_errors("insert", collection):
            async with self.pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO documents (collection, id, data) VALUES ($1, $2, $3)
                    ON CONFLICT (collection, id) DO UPDATE SET
                        data = EXCLUDED.data,
                        updated_at = NOW()
                    """,
                    collection,
                    doc_id,
                    dict(fields),
                )
        return doc_id

    async def insert_if_absent(
        self, collection: str, key: str, fields: Mapping[str, Any]
    ) -> str:
        async with self._translate_errors("insert_if_absent", collection):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO documents (collection, id, data)
                    VALUES ($1, $2, $3)
                    ON CONFLICT (collection, id) DO NOTHING
                    RETURNING id
                    """,
                    collection,
                    key,
                    dict(fields),
                )
        if row is None:
            raise DocumentConflictError(collection, key)
        return row["id"]

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> bool:
        async with self._translate_errors("update", collection):
            async with self.pool.acquire() as conn:
                result = await conn.execute(
                    """
                    UPDATE documents
                    SET data = data || $3::jsonb, updated_at = NOW()
                    WHERE collection = $1 AND id = $2
                    """,
                    collection,
                    doc_id,
                    dict(fields),
                )
        return self._parse_row_count(result) > 0

    async def delete(self, collection: str, doc_id: str) -> bool:
        async with self._translate_errors("delete", collection):
            async with self.pool.acquire() as conn:
                result = await conn.execute(
                    "DELETE FROM documents WHERE collection = $1 AND id = $2",
                    collection,
                    doc_id,
                )
        return self._parse_row_count(result) > 0

    @staticmethod
    def _parse_row_count(result: str) -> int:
        """Extract row count from PostgreSQL result like 'UPDATE 1' or 'DELETE 0'."""
        if not result:
            return 0
        return int(result.split()[-1])
