from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .schemas import Envelope

SUCCESS_MESSAGE = "Success"
HEALTH_MESSAGE = "Backend is running"
METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"
INTERNAL_SERVER_ERROR_MESSAGE = "Internal server error"
BAD_REQUEST_MESSAGE = "Bad request"
COMPONENT_NOT_FOUND_MESSAGE = "Component not found"
PAGE_NOT_FOUND_MESSAGE = "Page not found"

MESSAGES_BY_STATUS = {
    400: BAD_REQUEST_MESSAGE,
    404: PAGE_NOT_FOUND_MESSAGE,
    405: METHOD_NOT_ALLOWED_MESSAGE,
    500: INTERNAL_SERVER_ERROR_MESSAGE,
}


def envelope(status: int, message: str, data: Any = None) -> JSONResponse:
    body = Envelope[Any](code=status, message=message, data=data)
    return JSONResponse(status_code=status, content=jsonable_encoder(body))


def success(data: Any, message: str = SUCCESS_MESSAGE) -> JSONResponse:
    return envelope(200, message, data)


def error(status: int, message: str | None = None) -> JSONResponse:
    return envelope(status, message or MESSAGES_BY_STATUS.get(status, INTERNAL_SERVER_ERROR_MESSAGE))
