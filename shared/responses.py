"""
Response envelope helpers.

Every API response uses the same body: ``statusCode``, ``message``, ``data``
and ``error``. ``data`` is omitted on errors and ``error`` on success.
"""

from typing import Any, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field


class ApiEnvelope(BaseModel):
    """Standard API response body."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode")
    message: str = ""
    data: Any = None
    error: Optional[str] = None


def create_response(status_code: int, message: str = "", data: Any = None, error: Optional[str] = None) -> JSONResponse:
    """Build a JSON response wrapped in the standard envelope."""
    envelope = ApiEnvelope(status_code=status_code, message=message, data=data, error=error)
    # Payload is passed through untouched; only empty envelope slots are dropped.
    content = envelope.model_dump(by_alias=True)
    for key in ("data", "error"):
        if content[key] is None:
            del content[key]
    return JSONResponse(status_code=status_code, content=content)


def ok(message: str, data: Any = None) -> JSONResponse:
    return create_response(200, message, data)


def bad_request(message: str, data: Any = None) -> JSONResponse:
    return create_response(400, message, data, "Bad Request")


def internal_server_error(message: str) -> JSONResponse:
    return create_response(500, message, error="Internal Server Error")
