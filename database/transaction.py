"""Transactional access to the document store.

A transaction function receives a ``TransactionHandle``. Reads go straight to
the store inside the session; writes are staged and applied in order when the
function returns, so every read in a transaction happens before any write.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from shared.exceptions import TransactionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WriteOp:
    """Staged write operation kinds."""
    SET = "set"
    UPDATE = "update"
    DELETE = "delete"


class TransactionHandle:
    """Handle passed to transaction functions."""

    def __init__(self, db: AsyncIOMotorDatabase, session=None):
        self._db = db
        self._session = session
        self._writes: List[Tuple[str, str, str, Optional[Dict[str, Any]]]] = []

    @property
    def write_count(self) -> int:
        return len(self._writes)

    def _check_read_allowed(self):
        if self._writes:
            raise TransactionError("All reads must happen before writes in a transaction")

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Read a document by ID."""
        self._check_read_allowed()
        return await self._db[collection].find_one({"_id": doc_id}, session=self._session)

    async def find_one(self, collection: str, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Read the first document matching a query."""
        self._check_read_allowed()
        return await self._db[collection].find_one(query, session=self._session)

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]):
        """Stage a full document write (create or replace)."""
        self._writes.append((WriteOp.SET, collection, doc_id, data))

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]):
        """Stage a partial update of an existing document."""
        self._writes.append((WriteOp.UPDATE, collection, doc_id, fields))

    def delete(self, collection: str, doc_id: str):
        """Stage a document delete."""
        self._writes.append((WriteOp.DELETE, collection, doc_id, None))

    async def commit(self):
        """Apply staged writes in the order they were staged."""
        for op, collection, doc_id, data in self._writes:
            coll = self._db[collection]
            if op == WriteOp.SET:
                await coll.replace_one(
                    {"_id": doc_id},
                    {**data, "_id": doc_id},
                    upsert=True,
                    session=self._session
                )
            elif op == WriteOp.UPDATE:
                await coll.update_one({"_id": doc_id}, {"$set": data}, session=self._session)
            elif op == WriteOp.DELETE:
                await coll.delete_one({"_id": doc_id}, session=self._session)
        self._writes.clear()


class DocumentStore:
    """Document database with an atomic transaction primitive."""

    def __init__(self, db: AsyncIOMotorDatabase, client: Optional[AsyncIOMotorClient] = None):
        self.db = db
        self._client = client

    async def run_transaction(self, fn: Callable[[TransactionHandle], Awaitable[T]]) -> T:
        """
        Run ``fn`` atomically.

        The driver retries the whole callback on transient write conflicts, so
        ``fn`` must not have side effects outside the handle.
        """
        if self._client is None:
            raise TransactionError("Transactions require a MongoDB client")

        async def callback(session):
            txn = TransactionHandle(self.db, session)
            result = await fn(txn)
            await txn.commit()
            return result

        async with await self._client.start_session() as session:
            return await session.with_transaction(callback)
