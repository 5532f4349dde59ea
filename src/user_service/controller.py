"""
User service controller (Facade).

'UserController' is the single entry point the HTTP layer talks to. It holds
the injected 'UserDatabase' and nothing else, so no state survives between
requests other than what the store itself persists.
"""

from typing import Any

from loguru import logger

from user_service.database.data_models.user import User, UserDatabase


class UserController:
    def __init__(self, user_db: UserDatabase):
        self.user_db = user_db

    async def get_user(self, user_id: str) -> User:
        user = await self.user_db.get_user_by_id(user_id)
        logger.debug(f"Fetched user {user.id}")
        return user

    async def create_user(self, fields: dict[str, Any]) -> User:
        user = await self.user_db.create_user(fields)
        logger.info(f"Created user {user.id} with fields {sorted(user.fields)}")
        return user

    async def delete_user(self, user_id: str) -> None:
        await self.user_db.delete_user(user_id)
        logger.info(f"Deleted user {user_id}")
