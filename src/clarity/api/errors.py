"""HTTP error responses for the API.

Every error leaves the API as ``{"error": ..., "details"?: ..., "message"?: ...}``
so the frontend can show ``error`` directly and log ``details``.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import ClarityError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error rendered as a JSON response with a fixed status code."""

    def __init__(
        self,
        status_code: int,
        error: str,
        details: Any = None,
        message: str | None = None,
        headers: dict[str, str] | None = None,
        extra: dict[str, Any] | None = None,
    ):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details
        self.message = message
        self.headers = headers
        self.extra = extra or {}

    def to_content(self) -> dict[str, Any]:
        """Response body for this error."""
        content: dict[str, Any] = {"error": self.error}
        if self.message is not None:
            content["message"] = self.message
        if self.details is not None:
            content["details"] = self.details
        content.update(self.extra)
        return jsonable_encoder(content)


def bad_request(error: str, **kwargs: Any) -> ApiError:
    """400 for missing or malformed input."""
    return ApiError(status.HTTP_400_BAD_REQUEST, error, **kwargs)


def unauthorized(error: str) -> ApiError:
    """401 for missing or rejected credentials."""
    return ApiError(status.HTTP_401_UNAUTHORIZED, error)


def upstream_failure(error: str, details: Any = None) -> ApiError:
    """500 for provider failures, carrying the provider's payload."""
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, error, details=details)


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_content(), headers=exc.headers
    )


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    logger.debug(f"Rejected request on {request.url.path}: {errors}")
    in_body = any((err.get("loc") or ("body",))[0] == "body" for err in errors)
    message = "Invalid request body" if in_body else "Invalid request parameters"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"error": message, "details": errors}),
    )


async def _clarity_error_handler(request: Request, exc: ClarityError) -> JSONResponse:
    logger.exception(f"Unhandled application error on {request.url.path}")
    details = getattr(exc, "details", str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=jsonable_encoder({"error": "Internal server error", "details": details}),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on ``app``."""
    app.add_exception_handler(ApiError, _api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError,
        _validation_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(ClarityError, _clarity_error_handler)  # type: ignore[arg-type]
