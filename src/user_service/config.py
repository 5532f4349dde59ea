"""
Service configuration.

Settings are read once from environment variables at process start and passed
explicitly to whatever needs them; nothing reads the environment afterwards.

Environment variables
---------------------
MONGODB_URI                       connection string, required for the mongodb backend
USER_SERVICE_BACKEND              'mongodb' (default) or 'memory'
USER_SERVICE_DATABASE             database name (default 'user_service')
USER_SERVICE_COLLECTION           collection name (default 'users')
USER_SERVICE_HOST / _PORT         listen address (default localhost:8080)
USER_SERVICE_OPERATION_TIMEOUT    seconds per store operation (default 5)
USER_SERVICE_CONNECT_TIMEOUT      seconds for the startup connection (default 10)
USER_SERVICE_LEGACY_STATUS_CODES  '1' collapses every store failure to 404
USER_SERVICE_LOG_LEVEL            loguru level (default INFO)
"""

import os
from collections.abc import Mapping
from enum import StrEnum
from typing import Literal
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel, Field, ValidationError, model_validator

from user_service.exceptions import ConfigurationError


class Backend(StrEnum):
    MONGODB = "mongodb"
    MEMORY = "memory"


DEFAULT_OPERATION_TIMEOUT = 5.0
DEFAULT_CONNECT_TIMEOUT = 10.0

_ENV_FIELDS = {
    "MONGODB_URI": "mongodb_uri",
    "USER_SERVICE_BACKEND": "backend",
    "USER_SERVICE_DATABASE": "database",
    "USER_SERVICE_COLLECTION": "collection",
    "USER_SERVICE_HOST": "host",
    "USER_SERVICE_PORT": "port",
    "USER_SERVICE_OPERATION_TIMEOUT": "operation_timeout",
    "USER_SERVICE_CONNECT_TIMEOUT": "connect_timeout",
    "USER_SERVICE_LEGACY_STATUS_CODES": "legacy_status_codes",
    "USER_SERVICE_LOG_LEVEL": "log_level",
}


class ServiceSettings(BaseModel):
    """Validated startup configuration for the user service."""

    mongodb_uri: str | None = None
    backend: Backend = Backend.MONGODB
    database: str = Field(default="user_service", min_length=1)
    collection: str = Field(default="users", min_length=1)
    host: str = "localhost"
    port: int = Field(default=8080, ge=0, le=65535)
    operation_timeout: float = Field(default=DEFAULT_OPERATION_TIMEOUT, gt=0)
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0)
    legacy_status_codes: bool = False
    log_level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @model_validator(mode="after")
    def _require_uri_for_mongodb(self) -> "ServiceSettings":
        if self.backend == Backend.MONGODB and not self.mongodb_uri:
            raise ValueError("MONGODB_URI must be set when the mongodb backend is selected")
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ServiceSettings":
        """Build settings from 'environ' (defaults to 'os.environ').

        Raises 'ConfigurationError' listing every invalid value.
        """
        environ = os.environ if environ is None else environ
        values = {field: environ[var] for var, field in _ENV_FIELDS.items() if environ.get(var, "") != ""}
        if "backend" in values:
            values["backend"] = values["backend"].lower().strip()
        if "log_level" in values:
            values["log_level"] = values["log_level"].upper().strip()
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            problems = "; ".join(f"{'.'.join(map(str, e['loc'])) or 'settings'}: {e['msg']}" for e in exc.errors())
            raise ConfigurationError(f"Invalid configuration: {problems}") from exc

    @property
    def listen_address(self) -> str:
        return f"{self.host}:{self.port}"


def mask_uri(uri: str) -> str:
    """Hide the password in a connection string so it can be logged."""
    parts = urlsplit(uri)
    if parts.password is None:
        return uri
    netloc = parts.netloc.replace(f":{parts.password}@", ":****@", 1)
    return urlunsplit(parts._replace(netloc=netloc))
