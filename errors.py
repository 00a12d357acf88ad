"""
Error taxonomy and the handlers that render it.

Handlers never put stack traces or database messages in a response body;
those only go to the server log.
"""

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    def __init__(self, errors: List[Dict[str, Any]]):
        super().__init__("validation failed")
        self.errors = errors


class AuthError(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )


class ConflictError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


def _field_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    errors = []
    for err in exc.errors():
        loc = list(err.get("loc", ()))
        location = loc[0] if loc else "body"
        param = ".".join(str(part) for part in loc[1:])
        # submitted values are left out on purpose, they may be passwords
        errors.append({"location": location, "param": param, "msg": err.get("msg", "Invalid value")})
    return errors


async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": exc.errors})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return await validation_error_handler(request, ValidationError(_field_errors(exc)))


async def internal_error_handler(request: Request, exc: Exception):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"msg": "Unexpected error"},
    )


async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
    return await internal_error_handler(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
    # the server re-raises and logs these itself after the response goes out
    app.add_exception_handler(Exception, internal_error_handler)
