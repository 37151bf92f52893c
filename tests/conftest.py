"""Pytest configuration and fixtures."""
import asyncio
import copy
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import jwt
import pytest

from api.auth import TokenVerifier
from database.transaction import DocumentStore, TransactionHandle

TEST_JWT_SECRET = "test-secret"
ADMIN_EMAIL = "admin@newsbyte.test"
EDITOR_EMAIL = "editor@newsbyte.test"


def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, condition in query.items():
        value = doc.get(key)
        if isinstance(condition, dict) and any(op.startswith("$") for op in condition):
            for op, operand in condition.items():
                if op == "$in" and value not in operand:
                    return False
                if op == "$ne" and value == operand:
                    return False
                if op == "$gt" and (value is None or not value > operand):
                    return False
                if op == "$lte" and (value is None or not value <= operand):
                    return False
        elif value != condition:
            return False
    return True


class FakeCursor:
    """Subset of the motor cursor API used by the repositories."""

    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs

    def sort(self, key, direction: int = 1):
        if isinstance(key, list):
            for field, field_direction in reversed(key):
                self.sort(field, field_direction)
            return self
        self._docs.sort(
            key=lambda d: (d.get(key) is None, d.get(key) if d.get(key) is not None else 0),
            reverse=direction < 0
        )
        return self

    def skip(self, count: int):
        self._docs = self._docs[count:]
        return self

    def limit(self, count: int):
        if count:
            self._docs = self._docs[:count]
        return self

    async def to_list(self, length: Optional[int] = None):
        docs = self._docs if length is None else self._docs[:length]
        return [copy.deepcopy(d) for d in docs]


class FakeCollection:
    """In-memory stand-in for a motor collection."""

    def __init__(self, name: str):
        self.name = name
        self.docs: Dict[Any, Dict[str, Any]] = {}

    def seed(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return doc

    def raw(self, doc_id: Any) -> Optional[Dict[str, Any]]:
        return self.docs.get(doc_id)

    def _find(self, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [d for d in self.docs.values() if _matches(d, query)]

    async def find_one(self, query: Dict[str, Any], session=None):
        found = self._find(query)
        return copy.deepcopy(found[0]) if found else None

    def find(self, query: Optional[Dict[str, Any]] = None, session=None):
        return FakeCursor(self._find(query or {}))

    async def insert_one(self, doc: Dict[str, Any], session=None):
        doc.setdefault("_id", uuid.uuid4().hex)
        if doc["_id"] in self.docs:
            raise Exception(f"E11000 duplicate key error collection: {self.name}")
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def replace_one(self, query, doc, upsert: bool = False, session=None):
        found = self._find(query)
        if found:
            self.docs[found[0]["_id"]] = copy.deepcopy(doc)
            return SimpleNamespace(matched_count=1, modified_count=1)
        if upsert:
            self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(matched_count=0, modified_count=0)

    @staticmethod
    def _apply(doc: Dict[str, Any], update: Dict[str, Any]):
        for key, value in update.get("$set", {}).items():
            doc[key] = copy.deepcopy(value)
        for key, value in update.get("$inc", {}).items():
            doc[key] = (doc.get(key) or 0) + value

    async def update_one(self, query, update, upsert: bool = False, session=None):
        found = self._find(query)
        if not found:
            if upsert:
                doc = {"_id": query.get("_id", uuid.uuid4().hex)}
                self._apply(doc, update)
                self.docs[doc["_id"]] = doc
            return SimpleNamespace(matched_count=0, modified_count=0)
        self._apply(found[0], update)
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def find_one_and_update(self, query, update, return_document=False, session=None):
        found = self._find(query)
        if not found:
            return None
        before = copy.deepcopy(found[0])
        self._apply(found[0], update)
        return copy.deepcopy(found[0]) if return_document else before

    async def delete_one(self, query, session=None):
        found = self._find(query)
        if not found:
            return SimpleNamespace(deleted_count=0)
        del self.docs[found[0]["_id"]]
        return SimpleNamespace(deleted_count=1)


class FakeDatabase:
    """Attribute and item access to lazily created fake collections."""

    def __init__(self):
        self._collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]

    def __getattr__(self, name: str) -> FakeCollection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]


class FakeResponse:
    """Provider HTTP response with a raw body."""

    def __init__(self, status: int, body: bytes):
        self.status = status
        self._body = body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeHttpSession:
    """Stand-in for aiohttp.ClientSession answering from a URL keyed table."""

    def __init__(self, responses: Dict[str, Any]):
        self.responses = responses
        self.requests: List[str] = []

    def request(self, method: str, url: str, **kwargs) -> FakeResponse:
        self.requests.append(url)
        status, body = self.responses[url]
        return FakeResponse(status, body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class InMemoryDocumentStore(DocumentStore):
    """Store whose transactions run one at a time against the fake database."""

    def __init__(self, db: FakeDatabase):
        super().__init__(db, None)
        self._lock = asyncio.Lock()
        self.transactions_run = 0

    async def run_transaction(self, fn):
        async with self._lock:
            txn = TransactionHandle(self.db)
            result = await fn(txn)
            await txn.commit()
            self.transactions_run += 1
            return result


@pytest.fixture
def fake_db():
    """Create in-memory database with an admin registry."""
    db = FakeDatabase()
    db.admins.seed({"_id": ADMIN_EMAIL})
    return db


@pytest.fixture
def store(fake_db):
    """Transactional store over the in-memory database."""
    return InMemoryDocumentStore(fake_db)


@pytest.fixture
def verifier():
    """Token verifier using the test secret."""
    return TokenVerifier(secret=TEST_JWT_SECRET, algorithm="HS256")


def make_token(email: Optional[str], secret: str = TEST_JWT_SECRET) -> str:
    payload = {"sub": "uid-123", "exp": datetime.now(timezone.utc) + timedelta(hours=1)}
    if email:
        payload["email"] = email
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token(ADMIN_EMAIL)}"}


@pytest.fixture
def editor_headers():
    """Valid token for someone who is not in the admin registry."""
    return {"Authorization": f"Bearer {make_token(EDITOR_EMAIL)}"}


@pytest.fixture
def mock_redis_client():
    """Create mock Redis client."""
    redis = AsyncMock()
    redis.publish = AsyncMock(return_value=1)
    return redis


@pytest.fixture
def sample_category():
    """Create sample category data."""
    return {
        "_id": "C1",
        "name": "খেলাধুলা",
        "slug": "খেলাধুলা",
        "postCount": 3,
        "lastPostAt": None,
        "enabled": True
    }


@pytest.fixture
def sample_article():
    """Create sample unpublished article data."""
    return {
        "_id": "A1",
        "title": "Test Article Title",
        "summary": "This is the test article summary...",
        "source_url": "https://example.com/test-article",
        "source_name": "TestSource",
        "category": "খেলাধুলা",
        "categoryId": "C1",
        "published_at": None,
        "created_at": datetime(2024, 2, 4, 10, 30, tzinfo=timezone.utc)
    }


def make_provider(provider_id: str, priority: int, **overrides) -> Dict[str, Any]:
    """Provider document in its stored shape."""
    provider = {
        "_id": provider_id,
        "name": f"Provider {provider_id}",
        "type": "openai-compatible",
        "provider_category": "free",
        "endpoint": f"https://{provider_id.lower()}.example.com/v1/chat/completions",
        "apiKey": "sk-test-key-1234",
        "model": "test-model",
        "method": "POST",
        "headers": {},
        "priority": priority,
        "enabled": True,
        "status": "online",
        "isHealthy": True,
        "healthStatus": "healthy",
        "healthScore": 100,
        "pausedUntil": None,
        "failureCount": 0,
        "lastFailureAt": None,
        "lastError": None
    }
    provider.update(overrides)
    return provider
