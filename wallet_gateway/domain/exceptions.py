"""Domain-specific exceptions"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class UnauthenticatedError(DomainException):
    """No local session, or the session holds no access token"""

    pass


class TokenExpiredError(DomainException):
    """Access token is present but past its expiry; caller must re-authenticate"""

    pass


class UnknownEnvironmentError(DomainException):
    """Requested provider environment is not configured"""

    pass


class InvalidTransitionError(DomainException):
    """Transfer intent cannot move to the requested state"""

    pass


class ProviderError(DomainException):
    """
    Wallet provider call failed.

    Carries the HTTP status (None for transport failures), the provider's
    error code when the body had one, and the decoded error body.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.details = details or {}


class RemoteUnavailableError(ProviderError):
    """Timeout, connection failure, rate limiting or 5xx from the provider"""

    pass


class MalformedResponseError(ProviderError):
    """Provider answered 2xx with a body we cannot parse"""

    pass


class CredentialsRejectedError(ProviderError):
    """Provider rejected the client credentials or the access token"""

    pass


class ValidationRejectedError(ProviderError):
    """Provider rejected the request payload"""

    pass


class ConflictError(ProviderError):
    """Provider reported a duplicate or conflicting resource"""

    pass


class NotFoundError(ProviderError):
    """Account, beneficiary or other resource not found at the provider"""

    pass


class BusinessRuleViolationError(ProviderError):
    """Request is well-formed but violates a provider business rule"""

    pass


class InsufficientFundsError(BusinessRuleViolationError):
    pass


class TransferLimitExceededError(BusinessRuleViolationError):
    pass


class TwoFactorRejectedError(ProviderError):
    """2FA code missing or invalid at transfer execution"""

    pass
