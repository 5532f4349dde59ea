"""
FastAPI application exposing the user resource.

'create_app' binds three routes to a 'UserController' built around the
injected 'UserDatabase':

    GET    /user/{user_id}  : 200 + JSON record
    POST   /user            : 201 + JSON record with the assigned id
    DELETE /user/{user_id}  : 200 + "Deleted user <id>" (text/plain)

Domain errors raised anywhere below the routes are turned into responses by a
single exception handler; see 'status_for_error' for the mapping.
"""

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger

from user_service.controller import UserController
from user_service.database.data_models.user import User, UserDatabase
from user_service.exceptions import (
    InvalidPayloadError,
    InvalidUserIdError,
    StoreError,
    StoreTimeoutError,
    StoreUnavailableError,
    UserNotFoundError,
    UserServiceError,
)

_STATUS_BY_ERROR: tuple[tuple[type[UserServiceError], int], ...] = (
    (InvalidUserIdError, status.HTTP_400_BAD_REQUEST),
    (InvalidPayloadError, status.HTTP_400_BAD_REQUEST),
    (UserNotFoundError, status.HTTP_404_NOT_FOUND),
    (StoreTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for_error(exc: UserServiceError, legacy_status_codes: bool = False) -> int:
    """Map a domain error to an HTTP status code.

    With 'legacy_status_codes' every store failure is reported as 404, which
    is what clients of the first version of the service were written against.
    """
    if legacy_status_codes and isinstance(exc, StoreError):
        return status.HTTP_404_NOT_FOUND
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _reject_constant(token: str) -> Any:
    raise InvalidPayloadError(f"Request body is not valid JSON: {token} is not a JSON value")


async def read_json_object(request: Request) -> dict[str, Any]:
    """Decode the request body, which must be a JSON object.

    'NaN' and '[-]Infinity', which 'json.loads' accepts by default, are rejected.
    """
    body = await request.body()
    try:
        payload = json.loads(body, parse_constant=_reject_constant)
    except ValueError as exc:
        raise InvalidPayloadError(f"Request body is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise InvalidPayloadError(f"Request body must be a JSON object, got {type(payload).__name__}")
    return payload


def create_app(user_db: UserDatabase, legacy_status_codes: bool = False) -> FastAPI:
    """Build the FastAPI application wired to 'user_db'.

    Args:
        user_db: Store backend shared by every request. Its 'open()' and
            'close()' hooks run in the application lifespan.
        legacy_status_codes: Collapse store failures to 404.
    """
    controller = UserController(user_db)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await user_db.open()
        try:
            yield
        finally:
            await user_db.close()

    app = FastAPI(title="User Service", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

    @app.exception_handler(UserServiceError)
    async def handle_user_service_error(request: Request, exc: UserServiceError) -> JSONResponse:
        status_code = status_for_error(exc, legacy_status_codes)
        if isinstance(exc, StoreError):
            logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
        else:
            logger.debug(f"{request.method} {request.url.path} -> {status_code}: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.get("/user/{user_id}")
    async def get_user(user_id: str) -> User:
        return await controller.get_user(user_id)

    @app.post("/user", status_code=status.HTTP_201_CREATED)
    async def create_user(request: Request) -> User:
        fields = await read_json_object(request)
        return await controller.create_user(fields)

    @app.delete("/user/{user_id}")
    async def delete_user(user_id: str) -> PlainTextResponse:
        await controller.delete_user(user_id)
        return PlainTextResponse(f"Deleted user {user_id}")

    return app
