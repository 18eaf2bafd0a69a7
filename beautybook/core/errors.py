"""Domain error taxonomy and the request-boundary handlers that render it."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class DomainError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class InvalidInput(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidServiceSelection(InvalidInput):
    pass


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT


class InvalidTransition(Conflict):
    pass


class UpstreamPaymentFailure(DomainError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED


def error_body(message: str, errors: list[dict] | None = None) -> dict:
    body = {'success': False, 'message': message}
    if errors:
        body['errors'] = errors
    return body


def _field_name(location: tuple) -> str:
    parts = [str(part) for part in location if part not in ('body', 'query', 'path')]
    return '.'.join(parts) or 'request'


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.errors))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {'field': _field_name(tuple(error.get('loc', ()))), 'message': error.get('msg', 'Invalid value')}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body('Validation Error', errors),
    )


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else 'Request failed'
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, 'headers', None),
    )


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception('Database error on %s %s', request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=error_body('Database unavailable. Verify DATABASE_URL and database credentials.'),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
