"""
MongoDB-backed user store using the asynchronous 'pymongo' client.

One 'AsyncMongoClient' is created in 'open()' and shared by every request
until 'close()'; the driver's connection pool is safe for concurrent use. Each
operation runs under 'pymongo.timeout', the driver's client-side operation
timeout, so an in-flight call is abandoned once the bound expires.

Driver errors never leave this module: they are translated into the domain
errors from 'user_service.exceptions'.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import pymongo
from bson.errors import InvalidDocument
from loguru import logger
from pymongo import AsyncMongoClient
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from user_service.config import DEFAULT_CONNECT_TIMEOUT, DEFAULT_OPERATION_TIMEOUT
from user_service.database.data_models.user import User, UserDatabase, parse_user_id, strip_reserved_keys
from user_service.exceptions import (
    InvalidPayloadError,
    StoreTimeoutError,
    StoreUnavailableError,
    UserNotFoundError,
)


@contextmanager
def translate_errors(operation: str, seconds: float) -> Iterator[None]:
    """Bound the enclosed driver calls to 'seconds' and map driver failures to domain errors."""
    try:
        with pymongo.timeout(seconds):
            yield
    except InvalidDocument as exc:
        raise InvalidPayloadError(f"Document rejected by the store: {exc}") from exc
    except OverflowError as exc:
        # BSON integers are at most 64 bits
        raise InvalidPayloadError(f"Document rejected by the store: {exc}") from exc
    except ServerSelectionTimeoutError as exc:
        raise StoreUnavailableError(f"{operation}: no reachable MongoDB server ({exc})") from exc
    except ConnectionFailure as exc:
        if exc.timeout:
            raise StoreTimeoutError(f"{operation} timed out after {seconds}s") from exc
        raise StoreUnavailableError(f"{operation}: connection failure ({exc})") from exc
    except PyMongoError as exc:
        if exc.timeout:
            raise StoreTimeoutError(f"{operation} timed out after {seconds}s") from exc
        raise StoreUnavailableError(f"{operation} failed: {exc}") from exc


class MongoDBUserDatabase(UserDatabase):
    """
    'UserDatabase' over a single MongoDB collection.

    Records are stored with the identifier in '_id' (ObjectId) and every
    user-supplied field alongside it. 'client' may be passed in to share an
    existing client; otherwise one is created from 'uri' in 'open()'.

    Attributes:
        database: Name of the MongoDB database.
        collection_name: Name of the collection holding user records.
        operation_timeout: Bound in seconds for every read/write.
        connect_timeout: Bound in seconds for the startup connectivity check.
    """

    def __init__(
        self,
        uri: str | None = None,
        database: str = "user_service",
        collection: str = "users",
        operation_timeout: float = DEFAULT_OPERATION_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        client: Any | None = None,
    ) -> None:
        if uri is None and client is None:
            raise ValueError("Either 'uri' or 'client' must be provided")
        self.uri = uri
        self.database = database
        self.collection_name = collection
        self.operation_timeout = operation_timeout
        self.connect_timeout = connect_timeout
        self._client = client
        self._owns_client = client is None

    @property
    def collection(self) -> Any:
        if self._client is None:
            raise StoreUnavailableError("MongoDB client is not connected")
        return self._client[self.database][self.collection_name]

    async def open(self) -> None:
        if self._client is None:
            timeout_ms = int(self.connect_timeout * 1000)
            self._client = AsyncMongoClient(
                self.uri,
                connectTimeoutMS=timeout_ms,
                serverSelectionTimeoutMS=timeout_ms,
            )
        with translate_errors("connect", self.connect_timeout):
            await self._client.admin.command("ping")
        logger.info(f"Connected to MongoDB namespace {self.database}.{self.collection_name}")

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.close()
            self._client = None
            logger.info("MongoDB client closed")

    async def create_user(self, fields: dict[str, Any]) -> User:
        document = strip_reserved_keys(fields)
        with translate_errors("insert", self.operation_timeout):
            result = await self.collection.insert_one(document)
        return User.model_validate({**strip_reserved_keys(document), "id": str(result.inserted_id)})

    async def get_user_by_id(self, user_id: str) -> User:
        oid = parse_user_id(user_id)
        with translate_errors("find", self.operation_timeout):
            document = await self.collection.find_one({"_id": oid})
        if document is None:
            raise UserNotFoundError(user_id)
        return self._to_user(document)

    async def delete_user(self, user_id: str) -> None:
        oid = parse_user_id(user_id)
        with translate_errors("delete", self.operation_timeout):
            result = await self.collection.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise UserNotFoundError(user_id)

    @staticmethod
    def _to_user(document: dict[str, Any]) -> User:
        oid = document["_id"]
        return User.model_validate({**strip_reserved_keys(document), "id": str(oid)})
