"""
In-process user store.

Records live in a dict keyed by ObjectId for the lifetime of the process. Used
for local development ('USER_SERVICE_BACKEND=memory') and as the backend of
the HTTP tests. Stored and returned values are deep copies so callers can
never mutate a record behind the store's back.
"""

import copy
from typing import Any

from bson import ObjectId

from user_service.database.data_models.user import User, UserDatabase, parse_user_id, strip_reserved_keys
from user_service.exceptions import UserNotFoundError


class InMemoryUserDatabase(UserDatabase):
    def __init__(self) -> None:
        self._records: dict[ObjectId, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def create_user(self, fields: dict[str, Any]) -> User:
        oid = ObjectId()
        self._records[oid] = copy.deepcopy(strip_reserved_keys(fields))
        return self._to_user(oid)

    async def get_user_by_id(self, user_id: str) -> User:
        oid = parse_user_id(user_id)
        if oid not in self._records:
            raise UserNotFoundError(user_id)
        return self._to_user(oid)

    async def delete_user(self, user_id: str) -> None:
        oid = parse_user_id(user_id)
        if self._records.pop(oid, None) is None:
            raise UserNotFoundError(user_id)

    def _to_user(self, oid: ObjectId) -> User:
        return User.model_validate({**copy.deepcopy(self._records[oid]), "id": str(oid)})
