from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from quizhub.log import get_logger

log = get_logger(__name__)


class QuizHubError(Exception):
    """Base class for errors that are reported to the API caller."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(QuizHubError):
    """Malformed or incomplete payload."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(QuizHubError):
    """Missing, invalid or expired credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(QuizHubError):
    """Authenticated, but not allowed to touch the resource."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(QuizHubError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(QuizHubError):
    status_code = status.HTTP_409_CONFLICT


class ServerError(QuizHubError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class AIGenerationError(ServerError):
    """The text generator could not be reached or returned nothing."""


class InvalidAIOutputError(QuizHubError):
    """The generator replied, but the reply could not be parsed as JSON."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, raw: str):
        super().__init__(message)
        self.raw = raw

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "raw": self.raw}


async def quizhub_error_handler(request: Request, exc: QuizHubError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        if first.get("loc", ())[-1:] == ("email",):
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid email format"})
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Database error"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(QuizHubError, quizhub_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
