"""
User data model and storage interface.

A user record is an identifier plus an opaque mapping of user-supplied fields.
The identifier is a BSON ObjectId assigned by the store on creation and
hex-encoded for transport; clients never choose it.

The 'UserDatabase' ABC is the pluggable storage backend. Concrete
implementations: 'InMemoryUserDatabase', 'MongoDBUserDatabase'. Both
validate identifiers with 'parse_user_id' before touching storage.
"""

import re
from abc import ABC, abstractmethod
from typing import Any

from bson import ObjectId
from pydantic import BaseModel, ConfigDict

from user_service.exceptions import InvalidUserIdError

# Keys a client may send that would collide with the store-assigned identifier.
RESERVED_KEYS = frozenset({"id", "_id"})

_OBJECT_ID_HEX = re.compile(r"[0-9a-fA-F]{24}")


class User(BaseModel):
    """
    A stored user record.

    Only 'id' is declared; every other field is kept as an extra so the record
    shape stays whatever the client sent.
    """

    model_config = ConfigDict(extra="allow")

    id: str

    @property
    def fields(self) -> dict[str, Any]:
        """The user-supplied fields, without the identifier."""
        return dict(self.model_extra or {})


def parse_user_id(user_id: str) -> ObjectId:
    """Decode a hex identifier, raising 'InvalidUserIdError' if it is malformed."""
    if not isinstance(user_id, str) or _OBJECT_ID_HEX.fullmatch(user_id) is None:
        raise InvalidUserIdError(str(user_id))
    return ObjectId(user_id)


def strip_reserved_keys(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if key not in RESERVED_KEYS}


class UserDatabase(ABC):
    """Abstract repository for 'User' records scoped to one fixed namespace."""

    async def open(self) -> None:
        """Acquire the backend's resources. Called once at application startup."""

    async def close(self) -> None:
        """Release the backend's resources. Called once at application shutdown."""

    @abstractmethod
    async def create_user(self, fields: dict[str, Any]) -> User:
        """Persist 'fields' under a newly assigned identifier and return the record."""
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> User:
        """Return the record with 'user_id' or raise 'UserNotFoundError'."""
        pass

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        """Remove the record with 'user_id' or raise 'UserNotFoundError'."""
        pass
