"""
pytest configuration and fixtures.
"""

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from user_service.api import create_app
from user_service.database import InMemoryUserDatabase, User, UserDatabase
from user_service.exceptions import StoreError


class FailingUserDatabase(UserDatabase):
    """Store double whose every operation raises 'error'."""

    def __init__(self, error: StoreError) -> None:
        self.error = error

    async def create_user(self, fields: dict[str, Any]) -> User:
        raise self.error

    async def get_user_by_id(self, user_id: str) -> User:
        raise self.error

    async def delete_user(self, user_id: str) -> None:
        raise self.error


@pytest.fixture
def user_db() -> InMemoryUserDatabase:
    return InMemoryUserDatabase()


@pytest.fixture
def client(user_db: InMemoryUserDatabase) -> Iterator[TestClient]:
    """Test client for an app backed by the in-memory store."""
    with TestClient(create_app(user_db)) as test_client:
        yield test_client


@pytest.fixture
def valid_missing_id() -> str:
    """A well-formed identifier that no test ever inserts."""
    return "65a1f0c2e4b0a1b2c3d4e5f6"
