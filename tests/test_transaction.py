"""Transaction handle and document store tests."""
import pytest
from unittest.mock import AsyncMock, MagicMock

from database.transaction import DocumentStore, TransactionHandle
from shared.exceptions import TransactionError


class TestTransactionHandle:
    """Tests for TransactionHandle."""

    @pytest.mark.asyncio
    async def test_read_after_write_rejected(self, fake_db):
        """Reads are only allowed before the first staged write."""
        fake_db.news.seed({"_id": "A1", "title": "t"})
        txn = TransactionHandle(fake_db)

        assert (await txn.get("news", "A1"))["title"] == "t"
        txn.update("news", "A1", {"title": "new"})

        with pytest.raises(TransactionError):
            await txn.get("news", "A1")
        with pytest.raises(TransactionError):
            await txn.find_one("news", {"title": "t"})

    @pytest.mark.asyncio
    async def test_writes_deferred_until_commit(self, fake_db):
        """Staged writes are invisible until commit applies them in order."""
        fake_db.news.seed({"_id": "A1", "title": "t", "likes": 2})
        txn = TransactionHandle(fake_db)

        txn.update("news", "A1", {"title": "new"})
        txn.set("news", "A2", {"title": "second"})
        txn.delete("news", "A1")
        assert txn.write_count == 3
        assert fake_db.news.raw("A1")["title"] == "t"

        await txn.commit()

        assert fake_db.news.raw("A1") is None
        assert fake_db.news.raw("A2") == {"_id": "A2", "title": "second"}
        assert txn.write_count == 0

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, fake_db):
        fake_db.news.seed({"_id": "A1", "title": "t", "likes": 2})
        txn = TransactionHandle(fake_db)

        txn.update("news", "A1", {"title": "new"})
        await txn.commit()

        assert fake_db.news.raw("A1") == {"_id": "A1", "title": "new", "likes": 2}


class TestDocumentStore:
    """Tests for DocumentStore.run_transaction."""

    @pytest.mark.asyncio
    async def test_requires_client(self, fake_db):
        store = DocumentStore(fake_db)

        with pytest.raises(TransactionError):
            await store.run_transaction(AsyncMock())

    @pytest.mark.asyncio
    async def test_runs_inside_session(self, fake_db):
        """The callback runs under with_transaction and its writes carry the session."""
        fake_db.news.seed({"_id": "A1", "title": "t"})

        session = MagicMock()
        session.__aenter__.return_value = session
        session.__aexit__.return_value = False

        async def with_transaction(callback):
            return await callback(session)

        session.with_transaction = with_transaction
        client = MagicMock()
        client.start_session = AsyncMock(return_value=session)

        async def rename(txn):
            article = await txn.get("news", "A1")
            txn.update("news", "A1", {"title": article["title"] + "!"})
            return "done"

        result = await DocumentStore(fake_db, client).run_transaction(rename)

        assert result == "done"
        assert fake_db.news.raw("A1")["title"] == "t!"
        client.start_session.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_function_writes_nothing(self, store, fake_db):
        """An exception before commit discards every staged write."""
        fake_db.news.seed({"_id": "A1", "title": "t"})

        async def fail(txn):
            txn.update("news", "A1", {"title": "changed"})
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await store.run_transaction(fail)
        assert fake_db.news.raw("A1")["title"] == "t"
