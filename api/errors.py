"""
api/errors.py -- The one place domain errors become HTTP responses.

Pattern: closed enum + explicit table.
Every concrete error class raised by core/, auth/, subscriptions/ and
newsletter/ has exactly one entry in _ERROR_KINDS. Each ClientError has one
status code and one client message in _RESPONSES. Nothing else in the
codebase picks status codes for domain errors.

Security:
  [E1] UsernameNotFound and PasswordInvalid share INVALID_CREDENTIALS -- same
       status, same message, same headers.
  [E2] 5xx bodies never carry exception text. The detail goes to the log.
  [E3] 401s on the Basic-auth path carry WWW-Authenticate: Basic realm="publish".
       Session 401s (admin pages) do not, so browsers don't pop a dialog.
  [M5] Every auth-related error response carries Cache-Control: no-store.

Layer rule: api/ may import from every other package; nothing imports api/.
"""

from __future__ import annotations

import logging
from enum import Enum

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.models import ErrorDetail, ErrorResponse
from auth.errors import (
    AuthError,
    CredentialsError,
    HashingError,
    InvalidBase64,
    InvalidHeaderEncoding,
    MissingAuthHeader,
    MissingColon,
    PasswordInvalid,
    PasswordTooLong,
    Unauthorized,
    UsernameNotFound,
    UsernameTooLong,
    WrongAuthScheme,
)
from core.errors import DatabaseBusy, EmailTransportError, MailomatError
from newsletter.publisher import InvalidNewsletterIssue
from subscriptions.errors import (
    DuplicateSubscriber,
    EmailInvalid,
    EmailTooLong,
    InvalidSubscriptionToken,
    SubscriberNameEmpty,
    SubscriberNameForbiddenChars,
    SubscriberNameTooLong,
    UnknownSubscriptionToken,
)

logger = logging.getLogger("mailomat.api")

BASIC_CHALLENGE = 'Basic realm="publish"'


class ClientError(str, Enum):
    INVALID_INPUT = "invalid_input"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHORIZED = "unauthorized"
    SERVICE_UNAVAILABLE = "service_unavailable"
    SERVICE_ERROR = "service_error"


# ---------------------------------------------------------------------------
# Mapping tables
# ---------------------------------------------------------------------------

_ERROR_KINDS: dict[type[MailomatError], ClientError] = {
    # Malformed credentials
    MissingAuthHeader: ClientError.UNAUTHORIZED,
    WrongAuthScheme: ClientError.UNAUTHORIZED,
    InvalidHeaderEncoding: ClientError.INVALID_INPUT,
    InvalidBase64: ClientError.INVALID_INPUT,
    MissingColon: ClientError.INVALID_INPUT,
    UsernameTooLong: ClientError.INVALID_INPUT,
    PasswordTooLong: ClientError.INVALID_INPUT,
    # Authentication / authorization [E1]
    UsernameNotFound: ClientError.INVALID_CREDENTIALS,
    PasswordInvalid: ClientError.INVALID_CREDENTIALS,
    Unauthorized: ClientError.UNAUTHORIZED,
    HashingError: ClientError.SERVICE_ERROR,
    # Subscriber input
    SubscriberNameEmpty: ClientError.INVALID_INPUT,
    SubscriberNameTooLong: ClientError.INVALID_INPUT,
    SubscriberNameForbiddenChars: ClientError.INVALID_INPUT,
    EmailInvalid: ClientError.INVALID_INPUT,
    EmailTooLong: ClientError.INVALID_INPUT,
    # Tokens
    InvalidSubscriptionToken: ClientError.INVALID_INPUT,
    UnknownSubscriptionToken: ClientError.UNAUTHORIZED,
    # Never leaves the lifecycle; listed so the table stays total.
    DuplicateSubscriber: ClientError.SERVICE_ERROR,
    # Newsletter
    InvalidNewsletterIssue: ClientError.INVALID_INPUT,
    # Infrastructure
    DatabaseBusy: ClientError.SERVICE_UNAVAILABLE,
    EmailTransportError: ClientError.SERVICE_ERROR,
}

_RESPONSES: dict[ClientError, tuple[int, str]] = {
    ClientError.INVALID_INPUT: (400, "Received invalid input: {detail}"),
    ClientError.INVALID_CREDENTIALS: (401, "Invalid username or password."),
    ClientError.UNAUTHORIZED: (401, "Unauthorized access."),
    ClientError.SERVICE_UNAVAILABLE: (503, "Service temporarily unavailable, please retry."),
    ClientError.SERVICE_ERROR: (500, "Service error."),
}


def client_error_for(exc: BaseException) -> ClientError:
    """Return the ClientError kind for exc. Unmapped exceptions are SERVICE_ERROR."""
    kind = _ERROR_KINDS.get(type(exc))
    if kind is not None:
        return kind
    if isinstance(exc, MailomatError):
        logger.error("No client error mapping for %s; treating as service error", type(exc).__name__)
    return ClientError.SERVICE_ERROR


def status_and_message(kind: ClientError, exc: BaseException) -> tuple[int, str]:
    status_code, template = _RESPONSES[kind]
    if kind is ClientError.INVALID_INPUT:
        return status_code, template.format(detail=exc)
    return status_code, template


def error_response(request: Request, exc: BaseException) -> JSONResponse:
    """Build the JSON error response for any exception."""
    kind = client_error_for(exc)
    status_code, message = status_and_message(kind, exc)

    if status_code >= 500:
        # [E2]
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.info("%s on %s %s: %s", kind.value, request.method, request.url.path, type(exc).__name__)

    response = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=kind.value, message=message)).model_dump(),
    )
    if status_code == 401 and _is_basic_auth_path(request, exc):
        response.headers["WWW-Authenticate"] = BASIC_CHALLENGE  # [E3]
    if isinstance(exc, AuthError):
        response.headers["Cache-Control"] = "no-store"  # [M5]
    if kind is ClientError.SERVICE_UNAVAILABLE:
        response.headers["Retry-After"] = "1"
    return response


def _is_basic_auth_path(request: Request, exc: BaseException) -> bool:
    # Credential-format errors only come from the Basic extractor; an
    # AuthFailure is Basic when the request carried an Authorization header.
    return isinstance(exc, CredentialsError) or (
        not isinstance(exc, Unauthorized) and "authorization" in request.headers
    )


# ---------------------------------------------------------------------------
# Exception handlers
#
# All error responses use the ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def register_error_handlers(app: FastAPI) -> None:
    """Install the Mailomat exception handlers on app."""

    @app.exception_handler(MailomatError)
    async def mailomat_error_handler(request: Request, exc: MailomatError) -> JSONResponse:
        return error_response(request, exc)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 422 with structured error when request body or form fields fail validation."""
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="validation_error",
                    message="Request validation failed.",
                    detail=str(exc.errors()),
                )
            ).model_dump(),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=ErrorDetail(code=f"http_{exc.status_code}", message=str(exc.detail))
            ).model_dump(),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler for unexpected server errors.

        Security note: the raw exception is written to the log only, never to
        the response body. [E2]
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error=ErrorDetail(code=ClientError.SERVICE_ERROR.value, message="Service error.")
            ).model_dump(),
        )
