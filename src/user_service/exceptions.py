"""
Domain errors raised by the store adapters and the controller.

Store backends translate driver-specific failures into these types so the HTTP
layer can map them to status codes without knowing which backend is in use.
"""


class UserServiceError(Exception):
    """Base class for every error raised by the user service."""


class InvalidUserIdError(UserServiceError):
    """The identifier is not a 24-character hex ObjectId."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"Invalid user id {user_id!r}")
        self.user_id = user_id


class InvalidPayloadError(UserServiceError):
    """The request body or the resulting document cannot be stored."""


class UserNotFoundError(UserServiceError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class StoreError(UserServiceError):
    """Base class for failures of the underlying document store."""


class StoreTimeoutError(StoreError):
    """A store operation exceeded its time bound and was abandoned."""


class StoreUnavailableError(StoreError):
    """The store could not be reached or rejected the operation."""


class ConfigurationError(UserServiceError):
    """Startup configuration is missing or invalid."""
