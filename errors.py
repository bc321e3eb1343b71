import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from models import api_response


class ApiError(Exception):
    """Base class for every error a handler or service is allowed to raise.

    The exception handlers in register_exception_handlers render it as the
    standard {statusCode, data, message, success} envelope.
    """

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[list] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "Admin privileges required"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class UploadError(ApiError):
    status_code = 400
    default_message = "Error while uploading file"


class ServerError(ApiError):
    status_code = 500
    default_message = "Internal server error"


def _error_response(status_code: int, message: str, errors=None):
    if errors:
        return api_response(status_code, None, message, errors=errors)
    return api_response(status_code, None, message)


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logging.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logging.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
        return _error_response(exc.status_code, exc.message, exc.errors)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return _error_response(400, "Invalid request payload", errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logging.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return _error_response(500, ServerError.default_message)
