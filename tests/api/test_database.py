"""
Unit tests for the BookStore adapter.
Tests result mapping, timeouts and error translation.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from api.config import APIConfig
from api.database import BookStore, connect_book_store
from api.exceptions import StoreError, StoreTimeout
from api.models import Book, BookPayload


class TestBookStore:
    """Test cases for BookStore against the in-memory collection."""

    @pytest.mark.asyncio
    async def test_find_all_empty(self, book_store):
        """Test that an empty collection yields an empty list."""
        assert await book_store.find_all() == []

    @pytest.mark.asyncio
    async def test_insert_and_find_by_id(self, book_store, fake_collection):
        """Test that insert returns the id the document was stored under."""
        book_id = await book_store.insert(BookPayload(title="Dune", author="Herbert", price=9.99))

        assert fake_collection.documents[ObjectId(book_id)] == {
            "_id": ObjectId(book_id),
            "title": "Dune",
            "author": "Herbert",
            "price": 9.99,
        }
        book = await book_store.find_by_id(ObjectId(book_id))
        assert book == Book(id=book_id, title="Dune", author="Herbert", price=9.99)

    @pytest.mark.asyncio
    async def test_find_by_id_missing(self, book_store):
        """Test lookup of an unknown id."""
        assert await book_store.find_by_id(ObjectId()) is None

    @pytest.mark.asyncio
    async def test_update_overwrites_all_fields(self, book_store):
        """Test that update writes defaults for fields left out of the payload."""
        book_id = await book_store.insert(BookPayload(title="Dune", author="Herbert", price=9.99))

        matched = await book_store.update_by_id(ObjectId(book_id), BookPayload(price=12.5))

        assert matched == 1
        book = await book_store.find_by_id(ObjectId(book_id))
        assert (book.title, book.author, book.price) == ("", "", 12.5)

    @pytest.mark.asyncio
    async def test_update_and_delete_missing(self, book_store):
        """Test that unknown ids report zero matched and deleted documents."""
        assert await book_store.update_by_id(ObjectId(), BookPayload(title="Dune")) == 0
        assert await book_store.delete_by_id(ObjectId()) == 0

    @pytest.mark.asyncio
    async def test_delete(self, book_store):
        """Test that delete removes the document."""
        book_id = await book_store.insert(BookPayload(title="Dune"))

        assert await book_store.delete_by_id(ObjectId(book_id)) == 1
        assert await book_store.find_by_id(ObjectId(book_id)) is None

    @pytest.mark.asyncio
    async def test_find_all_undecodable_document(self, book_store, fake_collection):
        """Test that a malformed stored document fails the request instead of the process."""
        await book_store.insert(BookPayload(title="Dune"))
        bad_id = ObjectId()
        fake_collection.documents[bad_id] = {"_id": bad_id, "title": ["not", "text"], "price": 1.0}

        with pytest.raises(StoreError) as exc_info:
            await book_store.find_all()
        assert exc_info.value.operation == "find_all"

    @pytest.mark.asyncio
    async def test_find_by_id_undecodable_document(self, book_store, fake_collection):
        """Test decoding failure on a single lookup."""
        bad_id = ObjectId()
        fake_collection.documents[bad_id] = {"_id": bad_id, "price": "free"}

        with pytest.raises(StoreError):
            await book_store.find_by_id(bad_id)

    @pytest.mark.asyncio
    async def test_health_check(self, book_store):
        """Test health check against a responsive database."""
        assert await book_store.health_check() == {"status": "healthy"}


class TestBookStoreFailures:
    """Test cases for timeouts and driver errors."""

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test that a stalled call raises StoreTimeout."""
        async def stall(*args, **kwargs):
            await asyncio.sleep(1)

        collection = MagicMock()
        collection.find_one = stall
        store = BookStore(collection, timeout=0.01)

        with pytest.raises(StoreTimeout) as exc_info:
            await store.find_by_id(ObjectId())
        assert exc_info.value.timeout == 0.01
        assert isinstance(exc_info.value, StoreError)

    @pytest.mark.asyncio
    async def test_driver_error(self):
        """Test that driver errors are raised as StoreError."""
        collection = MagicMock()
        collection.insert_one = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
        store = BookStore(collection)

        with pytest.raises(StoreError) as exc_info:
            await store.insert(BookPayload(title="Dune"))
        assert not isinstance(exc_info.value, StoreTimeout)
        assert "no servers" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_health_check_unhealthy(self):
        """Test that health check reports failures instead of raising."""
        collection = MagicMock()
        collection.database.command = AsyncMock(side_effect=ServerSelectionTimeoutError("down"))
        store = BookStore(collection)

        health = await store.health_check()
        assert health["status"] == "unhealthy"
        assert "down" in health["error"]


class TestConnectBookStore:
    """Test cases for connection setup."""

    @pytest.mark.asyncio
    async def test_connect_uses_configured_collection(self):
        """Test that the store targets the configured database and collection."""
        settings = APIConfig(mongodb_database="library", mongodb_collection="books", store_timeout=5)
        with patch("api.database.AsyncIOMotorClient") as mock_client_cls:
            mock_client = mock_client_cls.return_value
            mock_client.admin.command = AsyncMock(return_value={"ok": 1.0})

            client, store = await connect_book_store(settings)

        assert client is mock_client
        mock_client_cls.assert_called_once_with(settings.mongodb_url, serverSelectionTimeoutMS=5000)
        mock_client.__getitem__.assert_called_once_with("library")
        assert store.timeout == 5
        assert store.collection is mock_client["library"]["books"]

    @pytest.mark.asyncio
    async def test_connect_failure_closes_client(self):
        """Test that a failed ping closes the client and raises."""
        with patch("api.database.AsyncIOMotorClient") as mock_client_cls:
            mock_client = mock_client_cls.return_value
            mock_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("down"))

            with pytest.raises(StoreError):
                await connect_book_store(APIConfig())

        mock_client.close.assert_called_once()
