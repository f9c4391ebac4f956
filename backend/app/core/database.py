"""
Document store access.

Handlers talk to a DocumentStore, never to Firestore directly, so the store
can be swapped for a fake in tests. Paths are slash separated
("communities/abc/posts/xyz"). Mutations that must be atomic on the server
are expressed with the sentinels below and translated by the backend.
"""
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from app.core.exceptions import DocumentStoreError
from app.core.logging_config import logger


# ==================== Update sentinels ====================

@dataclass(frozen=True, init=False)
class ArrayUnion:
    """Add values to an array field, skipping values already present"""
    values: Tuple[Any, ...]

    def __init__(self, *values: Any):
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True, init=False)
class ArrayRemove:
    """Remove every occurrence of the values from an array field"""
    values: Tuple[Any, ...]

    def __init__(self, *values: Any):
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class Increment:
    amount: int = 1


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


# ==================== Query model ====================

# Supported filter operators
EQ = "=="
ARRAY_CONTAINS = "array_contains"
GTE = ">="


@dataclass(frozen=True)
class QueryFilter:
    field: str
    op: str
    value: Any


@dataclass
class Document:
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


class DocumentStore(ABC):
    """Interface for the external document database"""

    @abstractmethod
    async def get(self, path: str) -> Optional[Document]:
        """Fetch a single document, None when absent"""

    @abstractmethod
    async def add(self, collection_path: str, data: Dict[str, Any]) -> str:
        """Create a document with a generated id and return the id"""

    @abstractmethod
    async def set(self, path: str, data: Dict[str, Any]) -> None:
        """Create or overwrite a document at a known path"""

    @abstractmethod
    async def update(self, path: str, data: Dict[str, Any]) -> None:
        """Apply a partial update (sentinels allowed) to an existing document"""

    @abstractmethod
    async def delete(self, path: str) -> None:
        ...

    @abstractmethod
    async def query(
        self,
        collection_path: str,
        filters: Sequence[QueryFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Document]:
        ...

    @abstractmethod
    async def update_many(self, paths: Iterable[str], data: Dict[str, Any]) -> int:
        """Apply the same partial update to several documents, returns the count"""

    async def ping(self) -> bool:
        """Cheap connectivity probe used by the readiness check"""
        await self.query("communities", limit=1)
        return True

    async def close(self) -> None:
        return None


# ==================== Firestore backend ====================

class FirestoreDocumentStore(DocumentStore):
    """DocumentStore backed by the Firebase Admin async Firestore client"""

    BATCH_SIZE = 500  # Firestore batch write limit

    def __init__(self, client=None):
        if client is None:
            from firebase_admin import firestore_async
            from app.core.firebase import get_firebase_app

            client = firestore_async.client(app=get_firebase_app())
        self.client = client

    # Translation of sentinels to Firestore transforms
    @staticmethod
    def _to_firestore(data: Dict[str, Any]) -> Dict[str, Any]:
        from google.cloud import firestore

        converted: Dict[str, Any] = {}
        for key, value in data.items():
            if value is SERVER_TIMESTAMP:
                converted[key] = firestore.SERVER_TIMESTAMP
            elif isinstance(value, ArrayUnion):
                converted[key] = firestore.ArrayUnion(list(value.values))
            elif isinstance(value, ArrayRemove):
                converted[key] = firestore.ArrayRemove(list(value.values))
            elif isinstance(value, Increment):
                converted[key] = firestore.Increment(value.amount)
            elif isinstance(value, dict):
                converted[key] = FirestoreDocumentStore._to_firestore(value)
            else:
                converted[key] = value
        return converted

    async def _run(self, operation: str, path: str, coro):
        from google.api_core.exceptions import GoogleAPICallError

        start = time.perf_counter()
        try:
            result = await coro
        except GoogleAPICallError as e:
            logger.log_error_with_context(e, context=f"firestore {operation} {path}")
            raise DocumentStoreError(f"{operation} {path.split('/')[0]}", cause=str(e)) from e
        duration_ms = (time.perf_counter() - start) * 1000
        docs = len(result) if isinstance(result, list) else 1
        logger.log_store_op(operation, path, duration_ms, docs_affected=docs)
        return result

    async def get(self, path: str) -> Optional[Document]:
        snapshot = await self._run("get", path, self.client.document(path).get())
        if not snapshot.exists:
            return None
        return Document(id=snapshot.id, data=snapshot.to_dict() or {})

    async def add(self, collection_path: str, data: Dict[str, Any]) -> str:
        _, ref = await self._run(
            "add", collection_path,
            self.client.collection(collection_path).add(self._to_firestore(data))
        )
        return ref.id

    async def set(self, path: str, data: Dict[str, Any]) -> None:
        await self._run("set", path, self.client.document(path).set(self._to_firestore(data)))

    async def update(self, path: str, data: Dict[str, Any]) -> None:
        await self._run("update", path, self.client.document(path).update(self._to_firestore(data)))

    async def delete(self, path: str) -> None:
        await self._run("delete", path, self.client.document(path).delete())

    async def query(
        self,
        collection_path: str,
        filters: Sequence[QueryFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Document]:
        from google.cloud import firestore
        from google.cloud.firestore_v1.base_query import FieldFilter

        q = self.client.collection(collection_path)
        for f in filters:
            q = q.where(filter=FieldFilter(f.field, f.op, f.value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            q = q.order_by(order_by, direction=direction)
        if limit is not None:
            q = q.limit(limit)
        if offset:
            q = q.offset(offset)

        async def collect() -> List[Document]:
            return [Document(id=snap.id, data=snap.to_dict() or {}) async for snap in q.stream()]

        return await self._run("query", collection_path, collect())

    async def update_many(self, paths: Iterable[str], data: Dict[str, Any]) -> int:
        paths = list(paths)
        payload = self._to_firestore(data)
        for start in range(0, len(paths), self.BATCH_SIZE):
            batch = self.client.batch()
            for path in paths[start:start + self.BATCH_SIZE]:
                batch.update(self.client.document(path), payload)
            await self._run("batch_update", paths[start], batch.commit())
        return len(paths)
