"""
Database service layer for the books collection.
Wraps a motor collection with bounded-time CRUD operations.
"""

import asyncio
from typing import Any, Awaitable, Dict, List, Optional, Tuple

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from api.config import APIConfig
from api.exceptions import StoreError, StoreTimeout
from api.models import Book, BookPayload

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


class BookStore:
    """
    Record store adapter for Book documents.

    Every operation is bounded by ``timeout`` seconds. Driver failures are
    raised as StoreError, timeouts as StoreTimeout.
    """

    def __init__(self, collection: AsyncIOMotorCollection, timeout: float = DEFAULT_TIMEOUT):
        self.collection = collection
        self.timeout = timeout

    async def _run(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error("Database operation timed out", operation=operation, timeout=self.timeout)
            raise StoreTimeout(operation, self.timeout)
        except PyMongoError as e:
            logger.error("Database operation failed", operation=operation, error=str(e))
            raise StoreError(operation, str(e))

    async def find_all(self) -> List[Book]:
        """
        Get every book in the collection.

        Returns:
            List of books, empty when the collection is empty

        Raises:
            StoreError: If the query fails or a stored document cannot be decoded
        """
        documents = await self._run("find_all", self._collect())

        books = []
        for document in documents:
            try:
                books.append(Book.from_document(document))
            except (KeyError, ValidationError) as e:
                logger.error("Failed to decode book document", book_id=str(document.get("_id")), error=str(e))
                raise StoreError("find_all", f"undecodable document: {e}")
        return books

    async def _collect(self) -> List[Dict[str, Any]]:
        documents = []
        async for document in self.collection.find({}):
            documents.append(document)
        return documents

    async def find_by_id(self, object_id: ObjectId) -> Optional[Book]:
        """
        Get a single book by ID.

        Args:
            object_id: Book identifier

        Returns:
            Book if found, None otherwise
        """
        document = await self._run("find_by_id", self.collection.find_one({"_id": object_id}))
        if document is None:
            return None

        try:
            return Book.from_document(document)
        except ValidationError as e:
            logger.error("Failed to decode book document", book_id=str(object_id), error=str(e))
            raise StoreError("find_by_id", f"undecodable document: {e}")

    async def insert(self, payload: BookPayload) -> str:
        """
        Insert a new book.

        Returns:
            Identifier assigned by the database, as a hex string
        """
        result = await self._run("insert", self.collection.insert_one(payload.to_document()))
        book_id = str(result.inserted_id)
        logger.debug("Inserted book", book_id=book_id)
        return book_id

    async def update_by_id(self, object_id: ObjectId, payload: BookPayload) -> int:
        """
        Overwrite title, author and price of a book.

        Fields the payload left out are written as their defaults, so the
        update replaces rather than merges.

        Returns:
            Number of matched documents
        """
        result = await self._run(
            "update_by_id",
            self.collection.update_one({"_id": object_id}, {"$set": payload.to_document()}),
        )
        logger.debug("Updated book", book_id=str(object_id), matched=result.matched_count)
        return result.matched_count

    async def delete_by_id(self, object_id: ObjectId) -> int:
        """Delete a book. Returns the number of deleted documents."""
        result = await self._run("delete_by_id", self.collection.delete_one({"_id": object_id}))
        logger.debug("Deleted book", book_id=str(object_id), deleted=result.deleted_count)
        return result.deleted_count

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self._run("ping", self.collection.database.command("ping"))
            return {"status": "healthy"}
        except StoreError as e:
            return {"status": "unhealthy", "error": str(e)}


async def connect_book_store(settings: APIConfig) -> Tuple[AsyncIOMotorClient, BookStore]:
    """
    Connect to MongoDB and build the book store.

    Args:
        settings: API configuration

    Returns:
        The motor client (to be closed on shutdown) and the BookStore
    """
    client = AsyncIOMotorClient(
        settings.mongodb_url,
        serverSelectionTimeoutMS=int(settings.store_timeout * 1000),
    )
    collection = client[settings.mongodb_database][settings.mongodb_collection]
    store = BookStore(collection, timeout=settings.store_timeout)

    try:
        await store._run("connect", client.admin.command("ping"))
    except StoreError:
        client.close()
        raise

    logger.info(
        "Successfully connected to MongoDB",
        database=settings.mongodb_database,
        collection=settings.mongodb_collection,
    )
    return client, store
