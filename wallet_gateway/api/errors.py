"""Domain exception to HTTP status translation"""

import logging
from fastapi import HTTPException
from wallet_gateway.domain.exceptions import (
    BusinessRuleViolationError,
    ConflictError,
    CredentialsRejectedError,
    DomainException,
    InvalidTransitionError,
    MalformedResponseError,
    NotFoundError,
    ProviderError,
    RemoteUnavailableError,
    TokenExpiredError,
    TwoFactorRejectedError,
    UnauthenticatedError,
    UnknownEnvironmentError,
    ValidationRejectedError,
)

# Most specific classes first; the first isinstance match wins
STATUS_BY_EXCEPTION = [
    (UnauthenticatedError, 401),
    (TokenExpiredError, 401),
    (CredentialsRejectedError, 401),
    (UnknownEnvironmentError, 400),
    (InvalidTransitionError, 409),
    (TwoFactorRejectedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (BusinessRuleViolationError, 422),
    (ValidationRejectedError, 422),
    (RemoteUnavailableError, 503),
    (MalformedResponseError, 502),
    (ProviderError, 502),
]


def to_http_exception(error: DomainException, request_id: str) -> HTTPException:
    """Map a domain exception to an HTTPException, keeping the provider error code"""
    status_code = next((status for cls, status in STATUS_BY_EXCEPTION if isinstance(error, cls)), 500)
    if status_code >= 500:
        logging.error(f"{type(error).__name__}: {error}", extra={"request_id": request_id})
    else:
        logging.warning(f"{type(error).__name__}: {error}", extra={"request_id": request_id})

    detail = {"error": type(error).__name__, "message": str(error)}
    if isinstance(error, ProviderError) and error.code:
        detail["code"] = error.code
    return HTTPException(status_code=status_code, detail=detail)
