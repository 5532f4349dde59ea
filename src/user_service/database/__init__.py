"""
User record storage.

    from user_service.database import build_user_database, UserDatabase

'build_user_database' selects the backend named in the settings; both
backends implement the same 'UserDatabase' interface.
"""

from loguru import logger

from user_service.config import Backend, ServiceSettings, mask_uri
from user_service.database.data_models.user import User, UserDatabase, parse_user_id
from user_service.database.in_memory import InMemoryUserDatabase
from user_service.database.mongodb import MongoDBUserDatabase
from user_service.exceptions import ConfigurationError

__all__ = [
    "InMemoryUserDatabase",
    "MongoDBUserDatabase",
    "User",
    "UserDatabase",
    "build_user_database",
    "parse_user_id",
]


def build_user_database(settings: ServiceSettings) -> UserDatabase:
    """Instantiate the store backend requested by 'settings.backend'.

    The MongoDB client is not created here; that happens in 'open()' once the
    event loop is running.
    """
    match settings.backend:
        case Backend.MONGODB:
            if settings.mongodb_uri is None:
                raise ConfigurationError("MONGODB_URI must be set when the mongodb backend is selected")
            logger.info(
                f"Store backend: MongoDB ({mask_uri(settings.mongodb_uri)}, "
                f"namespace {settings.database}.{settings.collection})"
            )
            return MongoDBUserDatabase(
                uri=settings.mongodb_uri,
                database=settings.database,
                collection=settings.collection,
                operation_timeout=settings.operation_timeout,
                connect_timeout=settings.connect_timeout,
            )
        case Backend.MEMORY:
            logger.warning("Store backend: in-memory (records are lost on exit)")
            return InMemoryUserDatabase()
        case _:
            raise ValueError(f"Unsupported backend {settings.backend!r}. Choose 'mongodb' or 'memory'.")
