import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from app.utils.response import error_response

logger = logging.getLogger(__name__)


class AppException(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None, data: Any = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.data = data


class MalformedInput(AppException):
    status_code = 400


class Unauthorized(AppException):
    status_code = 401


class NotFound(AppException):
    status_code = 404


class Conflict(AppException):
    status_code = 409


class UnsupportedMediaType(AppException):
    status_code = 415


class UnprocessableStep(AppException):
    """A stage submission that is well-formed but not acceptable right now."""

    status_code = 422

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message, data={"errors": errors or [message]})
        self.errors = errors or [message]


class InvalidStep(UnprocessableStep):
    pass


class ValidationFailed(UnprocessableStep):
    pass


class InternalError(AppException):
    status_code = 500


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s on %s %s", exc.message, request.method, request.url.path)
            return JSONResponse(
                status_code=exc.status_code,
                content=error_response("Internal server error"),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.message, data=exc.data),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=error_response("Malformed request", data={"errors": errors}),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_response("Internal server error"),
        )
