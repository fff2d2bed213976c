"""Exception hierarchy and the FastAPI handlers that turn it into JSON.

Every error response has the shape ``{"success": false, "message": ...}``;
validation failures add ``errors`` (a list of messages) and provider
failures add ``error`` (the upstream detail).
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class BaxelaError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message}


class ValidationFailed(BaxelaError):
    status_code = 400

    def __init__(self, errors: List[str], message: str = "Validation failed") -> None:
        super().__init__(message)
        self.errors = list(errors)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class BadRequest(BaxelaError):
    """A single-message 400, for requests rejected before field validation."""

    status_code = 400


class AuthenticationError(BaxelaError):
    status_code = 401


class AuthorizationError(BaxelaError):
    status_code = 403

    def __init__(self, message: str = "Unauthorized: Admin access required") -> None:
        super().__init__(message)


class NotFoundError(BaxelaError):
    status_code = 404


class ConfigurationError(BaxelaError):
    status_code = 503


class ProviderError(BaxelaError):
    """An upstream service (pinning provider, RPC node) answered with an error."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None, detail: str = "") -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["error"] = self.detail or self.message
        if self.upstream_status is not None:
            body["upstreamStatus"] = self.upstream_status
        return body


def error_response(exc: BaxelaError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BaxelaError)
    async def baxela_error_handler(request: Request, exc: BaxelaError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, error=exc.message)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = []
        for error in exc.errors():
            loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            errors.append(f"{loc}: {error.get('msg', '')}" if loc else error.get("msg", ""))
        return error_response(ValidationFailed(errors))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", path=request.url.path, method=request.method)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )
