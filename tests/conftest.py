"""Pytest configuration and shared fixtures for aggregator tests."""

from unittest.mock import AsyncMock, Mock

import mongomock
import pytest

from mongo_aggregator.config.aggregation_config import ENV_VARS, reset_config


class AsyncMongomockCollection:
    """Async facade over a mongomock collection, shaped like a Motor collection."""

    def __init__(self, collection):
        self._collection = collection
        self.name = collection.name
        self.full_name = f"{collection.database.name}.{collection.name}"

    async def aggregate(self, pipeline):
        return list(self._collection.aggregate(pipeline))


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Run every test against default configuration."""
    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def mongo_db():
    """In-memory database with the sample users and orders."""
    client = mongomock.MongoClient()
    db = client["test"]
    db["users"].insert_many(
        [
            {"name": "Alice", "age": 25, "country": "USA"},
            {"name": "Bob", "age": 30, "country": "USA"},
            {"name": "Charlie", "age": 35, "country": "Canada"},
            {"name": "Charlie", "age": 35, "country": "Canada"},
        ]
    )
    db["orders"].insert_many(
        [
            {"customer": "Alice", "item": "book"},
            {"customer": "Bob", "item": "lamp"},
            {"customer": "Alice", "item": "pen"},
        ]
    )
    return db


@pytest.fixture
def users(mongo_db):
    """Async users collection."""
    return AsyncMongomockCollection(mongo_db["users"])


@pytest.fixture
def mock_target():
    """Target whose aggregate coroutine returns an empty result."""
    target = Mock()
    target.full_name = "test.mock"
    target.aggregate = AsyncMock(return_value=[])
    return target
