"""Wallet provider HTTP client, bound to one provider environment"""

import httpx
from typing import Any, Dict, List, Optional
from wallet_gateway.domain.models import Account, Beneficiary, TokenGrant
from wallet_gateway.domain.exceptions import (
    BusinessRuleViolationError,
    ConflictError,
    CredentialsRejectedError,
    InsufficientFundsError,
    MalformedResponseError,
    NotFoundError,
    ProviderError,
    RemoteUnavailableError,
    TransferLimitExceededError,
    TwoFactorRejectedError,
    UnknownEnvironmentError,
    ValidationRejectedError,
)
from wallet_gateway.config import settings
from wallet_gateway.infrastructure.observability.metrics import provider_latency_histogram, provider_failure_counter

TWO_FACTOR_CODES = {"INVALID_SECURITY_CODE", "SECURITY_CODE_REQUIRED", "INVALID_2FA_CODE", "2FA_REQUIRED"}
TRANSFER_LIMIT_CODES = {"TRANSFER_LIMIT_EXCEEDED", "DAILY_LIMIT_EXCEEDED", "LIMIT_EXCEEDED"}
NOT_FOUND_CODES = {"BENEFICIARY_NOT_FOUND", "ACCOUNT_NOT_FOUND"}

# SMS security code delivery type expected by /users/sendSecurityCode
SMS_CODE_TYPE = 1


def error_from_response(response: httpx.Response) -> ProviderError:
    """
    Translate a non-2xx provider response into a domain exception.

    The body's error code wins over the HTTP status for 2FA, funds, limit
    and not-found failures; otherwise the status decides.
    """
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {"detail": body}

    error = body.get("error") if isinstance(body.get("error"), dict) else body
    code = error.get("code") or error.get("type")
    code = str(code).upper() if code is not None else None
    message = error.get("message") or body.get("message") or f"Provider error: {response.status_code}"
    status = response.status_code
    args = dict(status_code=status, code=code, details=body)

    if status == 401:
        return CredentialsRejectedError(message, **args)
    if status == 429 or status >= 500:
        return RemoteUnavailableError(message, **args)
    if code in TWO_FACTOR_CODES:
        return TwoFactorRejectedError(message, **args)
    if code == "INSUFFICIENT_FUNDS":
        return InsufficientFundsError(message, **args)
    if code in TRANSFER_LIMIT_CODES:
        return TransferLimitExceededError(message, **args)
    if status == 404 or code in NOT_FOUND_CODES:
        return NotFoundError(message, **args)
    if status == 409:
        return ConflictError(message, **args)
    if status == 403:
        return BusinessRuleViolationError(message, **args)
    if status in (400, 422):
        return ValidationRejectedError(message, **args)
    return ProviderError(message, **args)


class ProviderClient:
    """Client for the wallet provider REST API in a single environment"""

    def __init__(
        self,
        environment: str,
        base_url: str,
        timeout: float | None = None,
        device_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.environment = environment
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.device_id = device_id or settings.device_id
        self.transport = transport

    async def issue_token(self, client_id: str, client_secret: str) -> TokenGrant:
        """
        Exchange client credentials for an access token.

        Raises:
            CredentialsRejectedError: Provider refused the credentials
            RemoteUnavailableError: On timeout, network or 5xx errors
            MalformedResponseError: Token payload missing fields
        """
        data = await self._request(
            "issue_token",
            "POST",
            "/access/token",
            json={"client_id": client_id, "client_secret": client_secret, "grant_type": "client_credentials"},
        )
        try:
            return TokenGrant(access_token=data["access_token"], expires_in=int(data["expires_in"]))
        except (KeyError, ValueError, TypeError) as e:
            raise self._failed("issue_token", MalformedResponseError(f"Invalid token data from provider: {e}")) from e

    async def get_profile(self, token: str) -> Dict[str, Any]:
        data = await self._request("get_profile", "GET", "/users/profile", token=token)
        if not isinstance(data, dict):
            raise self._failed("get_profile", MalformedResponseError("Profile payload is not an object"))
        return data

    async def get_accounts(self, token: str) -> List[Account]:
        """Fetch all accounts; amounts stay in minor units"""
        data = await self._request("get_accounts", "GET", "/accounts/", token=token)
        rows = data.get("rows", []) if isinstance(data, dict) else data
        if not isinstance(rows, list):
            rows = []
        try:
            return [Account.from_provider(row) for row in rows]
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise self._failed("get_accounts", MalformedResponseError(f"Invalid account data from provider: {e}")) from e

    async def get_beneficiaries(self, token: str, offset: int = 0, limit: int = 20) -> List[Beneficiary]:
        data = await self._request(
            "get_beneficiaries",
            "GET",
            "/deposit_accounts/",
            token=token,
            params={"offset": offset, "limit": limit},
        )
        rows = (data.get("rows") or []) if isinstance(data, dict) else []
        try:
            return [Beneficiary.from_provider(row) for row in rows]
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise self._failed(
                "get_beneficiaries", MalformedResponseError(f"Invalid beneficiary data from provider: {e}")
            ) from e

    async def create_beneficiary(self, token: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("create_beneficiary", "POST", "/deposit_accounts", token=token, json=data)

    async def get_account_movements(
        self, token: str, account_id: str, offset: int = 0, limit: int = 20
    ) -> Dict[str, Any]:
        return await self._request(
            "get_account_movements",
            "GET",
            f"/accounts/{account_id}/movements",
            token=token,
            params={"offset": offset, "limit": limit},
        )

    async def simulate_transfer(self, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("simulate_transfer", "POST", "/booking/payout/simulate", token=token, json=payload)

    async def execute_transfer(self, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("execute_transfer", "POST", "/booking/payout", token=token, json=payload)

    async def request_sms_code(self, token: str, phone_number: str) -> Dict[str, Any]:
        return await self._request(
            "request_sms_code",
            "POST",
            "/users/sendSecurityCode",
            token=token,
            json={"phoneNumber": phone_number, "type": SMS_CODE_TYPE},
        )

    async def validate_account_number(self, token: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "validate_account_number", "POST", "/deposit_accounts/validate_account_number", token=token, json=data
        )

    async def validate_swift_code(self, token: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("validate_swift_code", "POST", "/deposit_accounts/Validate_Swift", token=token, json=data)

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        token: str | None = None,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
            headers["X-DEVICE-ID"] = self.device_id

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with provider_latency_histogram.labels(operation=operation).time():
                    response = await client.request(
                        method,
                        f"{self.base_url}{path}",
                        headers=headers,
                        json=json,
                        params=params,
                    )
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                raise self._failed(operation, RemoteUnavailableError(f"Provider timeout after {self.timeout}s")) from e
            except httpx.HTTPStatusError as e:
                raise self._failed(operation, error_from_response(e.response)) from e
            except httpx.RequestError as e:
                raise self._failed(operation, RemoteUnavailableError(f"Provider unreachable: {e}")) from e
            except ValueError as e:
                raise self._failed(operation, MalformedResponseError(f"Invalid JSON from provider: {e}")) from e

    def _failed(self, operation: str, error: ProviderError) -> ProviderError:
        provider_failure_counter.labels(operation=operation, kind=type(error).__name__).inc()
        return error


class ProviderClientPool:
    """
    One ProviderClient per configured environment.

    Callers pick the client for a session's bound environment instead of
    flipping a shared base URL.
    """

    def __init__(
        self,
        urls: Dict[str, str] | None = None,
        timeout: float | None = None,
        device_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.urls = urls or settings.provider_urls()
        self.timeout = timeout
        self.device_id = device_id
        self.transport = transport
        self._clients: Dict[str, ProviderClient] = {}

    def environments(self) -> List[str]:
        return list(self.urls)

    def for_environment(self, environment: str) -> ProviderClient:
        """
        Raises:
            UnknownEnvironmentError: environment is not configured
        """
        if environment not in self.urls:
            raise UnknownEnvironmentError(
                f"Unknown provider environment: {environment}. Valid: {', '.join(self.urls)}"
            )
        if environment not in self._clients:
            self._clients[environment] = ProviderClient(
                environment=environment,
                base_url=self.urls[environment],
                timeout=self.timeout,
                device_id=self.device_id,
                transport=self.transport,
            )
        return self._clients[environment]
