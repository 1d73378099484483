"""Error responses.

Every failure is returned as ``{"error": {"code": ..., "message": ...}}``.
"""

import logfire
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sharing.adapter.error import AdapterError
from sharing.domain.error import (
    AuthorizationError,
    BusinessRuleViolationError,
    DomainError,
    EmailSendError,
    FriendMismatchError,
    InvalidArgumentsError,
    InvalidInviteError,
    NotAuthorizedError,
    NotFoundError,
    StoreError,
    UnsupportedSchemaVersionError,
    ValidationError,
)
from sharing.interface.error import MalformedAuthorizationError

# Most specific first
_STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (InvalidInviteError, status.HTTP_404_NOT_FOUND),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (FriendMismatchError, status.HTTP_403_FORBIDDEN),
    (NotAuthorizedError, status.HTTP_403_FORBIDDEN),
    (AuthorizationError, status.HTTP_401_UNAUTHORIZED),
    (UnsupportedSchemaVersionError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (BusinessRuleViolationError, status.HTTP_400_BAD_REQUEST),
    (StoreError, status.HTTP_409_CONFLICT),
    (EmailSendError, status.HTTP_502_BAD_GATEWAY),
]


def status_for(error: DomainError) -> int:
    """HTTP status for a domain error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logfire.error(
            "Request failed", path=request.url.path, code=exc.code, error=exc.message
        )
    else:
        logfire.info(
            "Request rejected", path=request.url.path, code=exc.code, error=exc.message
        )
    return JSONResponse(status_code=status_code, content=error_body(exc.code, exc.message))


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(InvalidArgumentsError.code, InvalidArgumentsError.default_message),
    )


async def handle_malformed_authorization(
    request: Request, exc: MalformedAuthorizationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=error_body(AuthorizationError.code, str(exc)),
    )


async def handle_adapter_error(request: Request, exc: AdapterError) -> JSONResponse:
    logfire.error(
        "Provider call failed",
        path=request.url.path,
        provider=getattr(exc, "provider", None),
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=error_body("ProviderError", "Upstream provider unavailable"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach the error handlers to an application."""
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(MalformedAuthorizationError, handle_malformed_authorization)
    app.add_exception_handler(AdapterError, handle_adapter_error)
