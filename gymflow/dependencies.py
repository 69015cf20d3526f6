from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Header, HTTPException
from pydantic import BaseModel

from gymflow import db as db_module
from gymflow.config import Settings
from gymflow.repositories import Store
from gymflow.services.errors import ConflictError, GymflowError, NotFoundError, ValidationError

settings = Settings()

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
)


class ErrorResponse(BaseModel):
    code: str
    message: str


async def require_api_headers(
    x_api_key: str = Header(..., alias="X-API-Key"),
    x_api_ver: str | None = Header(None, alias="X-API-Ver"),
) -> None:
    if x_api_ver is None:
        err = ErrorResponse(code="UPGRADE_REQUIRED", message="Missing API version")
        raise HTTPException(status_code=426, detail=err.model_dump())

    if x_api_ver != "v1":
        err = ErrorResponse(code="UPGRADE_REQUIRED", message="Invalid API version")
        raise HTTPException(status_code=426, detail=err.model_dump())

    if x_api_key != settings.api_key:
        err = ErrorResponse(code="UNAUTHORIZED", message="Invalid API key")
        raise HTTPException(status_code=401, detail=err.model_dump())


def http_error(exc: GymflowError) -> HTTPException:
    """Translate a service error into an HTTP error with an ``ErrorResponse`` body."""
    status_code = 500
    for error_cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            status_code = code
            break
    if status_code == 500:
        logger.error("Unmapped service error: %s", exc)
    err = ErrorResponse(code=exc.code, message=exc.message)
    return HTTPException(status_code=status_code, detail=err.model_dump())


@contextmanager
def store_scope() -> Iterator[Store]:
    """Open a session-backed store; service errors become HTTP errors."""
    with db_module.SessionLocal() as db:
        try:
            yield Store(db)
        except GymflowError as exc:
            raise http_error(exc) from exc
