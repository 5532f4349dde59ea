"""
HTTP CRUD service for user records stored in MongoDB.

    from user_service import create_app, InMemoryUserDatabase

    app = create_app(InMemoryUserDatabase())
"""

from user_service.api import create_app
from user_service.config import ServiceSettings
from user_service.controller import UserController
from user_service.database import InMemoryUserDatabase, MongoDBUserDatabase, User, UserDatabase, build_user_database

__all__ = [
    "InMemoryUserDatabase",
    "MongoDBUserDatabase",
    "ServiceSettings",
    "User",
    "UserController",
    "UserDatabase",
    "build_user_database",
    "create_app",
]
