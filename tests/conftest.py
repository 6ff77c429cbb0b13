"""
Pytest configuration and shared fixtures.
"""

import copy
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from api.database import BookStore
from api.main import app, current_book_store


class FakeCursor:
    """Async iterator over a snapshot of documents, like a motor cursor."""

    def __init__(self, documents):
        self._documents = list(documents)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._documents:
            raise StopAsyncIteration
        return self._documents.pop(0)


class FakeDatabase:
    """Minimal stand-in for an AsyncIOMotorDatabase."""

    async def command(self, name):
        return {"ok": 1.0}


class FakeCollection:
    """
    In-memory stand-in for an AsyncIOMotorCollection.
    Supports the subset of the motor API used by BookStore.
    """

    def __init__(self):
        self.documents = {}
        self.database = FakeDatabase()

    def find(self, query):
        return FakeCursor(copy.deepcopy(doc) for doc in self.documents.values())

    async def find_one(self, query):
        document = self.documents.get(query["_id"])
        return copy.deepcopy(document) if document is not None else None

    async def insert_one(self, document):
        document.setdefault("_id", ObjectId())
        self.documents[document["_id"]] = copy.deepcopy(document)
        return SimpleNamespace(inserted_id=document["_id"])

    async def update_one(self, query, update):
        document = self.documents.get(query["_id"])
        if document is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        document.update(update["$set"])
        return SimpleNamespace(matched_count=1, modified_count=1)

    async def delete_one(self, query):
        removed = self.documents.pop(query["_id"], None)
        return SimpleNamespace(deleted_count=0 if removed is None else 1)


@pytest.fixture
def fake_collection():
    """Create an empty in-memory books collection."""
    return FakeCollection()


@pytest.fixture
def book_store(fake_collection):
    """Create a BookStore backed by the in-memory collection."""
    return BookStore(fake_collection, timeout=1.0)


@pytest.fixture
def client(book_store):
    """Create a test client wired to the in-memory book store."""
    app.dependency_overrides[current_book_store] = lambda: book_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_book_payload():
    """Sample request body for creating a book."""
    return {"title": "Dune", "author": "Herbert", "price": 9.99}
