"""Document store interface and in-process implementation

The voting core only needs collection-scoped queries, primary-key lookups,
plain inserts and one conditional insert. Anything offering per-document
atomic writes can back it: PostgresDocumentStore in production,
MemoryDocumentStore for local development and tests.

Filter semantics (both implementations):
    {"field": value}            equality
    {"field": [v1, v2, ...]}    membership (value in list)
"""

import asyncio
import copy
import itertools
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol

from config import get_logger
from database.id_generation import generate_document_id
from exceptions import DocumentConflictError

logger = get_logger(__name__).bind(component="document_store")

Filters = Optional[Mapping[str, Any]]


@dataclass
class Document:
    """Stored document: id, field data and insertion sequence number"""

    id: str
    data: Dict[str, Any]
    seq: int


class DocumentStore(Protocol):
    """Operations the voting core consumes from the backing store

    Implementations raise DatabaseConnectionError for transient failures and
    DocumentConflictError when insert_if_absent finds an existing key.
    """

    async def query(self, collection: str, filters: Filters = None) -> List[Document]: ...

    async def get_by_id(self, collection: str, doc_id: str) -> Optional[Document]: ...

    async def insert(
        self, collection: str, fields: Mapping[str, Any], doc_id: Optional[str] = None
    ) -> str: ...

    async def insert_if_absent(
        self, collection: str, key: str, fields: Mapping[str, Any]
    ) -> str: ...

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> bool: ...

    async def delete(self, collection: str, doc_id: str) -> bool: ...

    async def close(self) -> None: ...


def matches_filters(data: Mapping[str, Any], filters: Filters) -> bool:
    """Check a document's fields against equality / membership filters"""
    if not filters:
        return True
    for key, expected in filters.items():
        actual = data.get(key)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


class MemoryDocumentStore:
    """In-process document store

    Every operation yields to the event loop once before touching state, so
    concurrent callers interleave the same way they would against a network
    store. Between that yield and the return there are no suspension
    points, which makes each operation (insert_if_absent included) atomic.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Document]] = defaultdict(dict)
        self._seq = itertools.count(1)

    async def query(self, collection: str, filters: Filters = None) -> List[Document]:
        await asyncio.sleep(0)
        docs = [
            doc for doc in self._collections[collection].values()
            if matches_filters(doc.data, filters)
        ]
        docs.sort(key=lambda d: d.seq)
        return [self._copy(doc) for doc in docs]

    async def get_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        await asyncio.sleep(0)
        doc = self._collections[collection].get(doc_id)
        return self._copy(doc) if doc else None

    async def insert(
        self, collection: str, fields: Mapping[str, Any], doc_id: Optional[str] = None
    ) -> str:
        """Insert or overwrite; a generated id is used when doc_id is None"""
        await asyncio.sleep(0)
        if doc_id is None:
            doc_id = generate_document_id()
            while doc_id in self._collections[collection]:
                doc_id = generate_document_id()
        self._put(collection, doc_id, fields)
        return doc_id

    async def insert_if_absent(
        self, collection: str, key: str, fields: Mapping[str, Any]
    ) -> str:
        await asyncio.sleep(0)
        if key in self._collections[collection]:
            raise DocumentConflictError(collection, key)
        self._put(collection, key, fields)
        return key

    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> bool:
        await asyncio.sleep(0)
        doc = self._collections[collection].get(doc_id)
        if not doc:
            return False
        doc.data.update(copy.deepcopy(dict(fields)))
        return True

    async def delete(self, collection: str, doc_id: str) -> bool:
        await asyncio.sleep(0)
        return self._collections[collection].pop(doc_id, None) is not None

    async def close(self) -> None:
        logger.debug("memory store closed", collections=len(self._collections))

    def _put(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        self._collections[collection][doc_id] = Document(
            id=doc_id,
            data=copy.deepcopy(dict(fields)),
            seq=next(self._seq),
        )

    @staticmethod
    def _copy(doc: Document) -> Document:
        return Document(id=doc.id, data=copy.deepcopy(doc.data), seq=doc.seq)
