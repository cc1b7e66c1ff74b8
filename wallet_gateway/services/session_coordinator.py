"""Session coordinator - authentication, offline-first sync and transfer orchestration"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from wallet_gateway.config import Settings, settings
from wallet_gateway.domain.exceptions import ProviderError, TokenExpiredError, UnauthenticatedError
from wallet_gateway.domain.models import (
    AccountBalance,
    AuthResult,
    Beneficiary,
    SessionView,
    SmsChallenge,
    SmsMode,
    Snapshot,
)
from wallet_gateway.domain.transfers import (
    TransferIntent,
    convert_execution,
    convert_movements,
    convert_simulation,
    decide_sms_mode,
)
from wallet_gateway.infrastructure.clients.provider import ProviderClient, ProviderClientPool
from wallet_gateway.infrastructure.database.models import SessionRecord
from wallet_gateway.infrastructure.database.repositories import SessionRepository
from wallet_gateway.infrastructure.observability.logging import log_authentication, log_cache_fallback, log_transfer
from wallet_gateway.infrastructure.observability.metrics import (
    authentication_counter,
    cache_fallback_counter,
    record_transfer,
    sms_challenge_counter,
)
from wallet_gateway.utils.date_utils import as_utc, expiry_from_lifetime, is_expired, utcnow


class SessionCoordinator:
    """
    Owns session mutation for one unit of work.

    Policy:
    - Session preconditions are checked locally before any provider call
    - Writes are provider-first; the cache is replaced wholesale on success
    - Refreshes degrade to the cached snapshot on provider failure (Snapshot.stale)
    - Authentication and transfer failures propagate undecorated, no retries
    """

    def __init__(
        self,
        repository: SessionRepository,
        providers: ProviderClientPool,
        clock: Callable[[], datetime] = utcnow,
        config: Settings = settings,
    ):
        self.repository = repository
        self.providers = providers
        self.clock = clock
        self.config = config

    # Authentication & token lifecycle

    async def authenticate(self, identity: str, secret: str, environment: Optional[str] = None) -> AuthResult:
        """
        Authenticate against the provider and sync profile, accounts and beneficiaries.

        Flow:
        1. Resolve environment (explicit > session's previous > default)
        2. Issue token, then find or create the local session (storing the accepted secret)
        3. Persist token + expiry (overwrite)
        4. Fetch and cache profile, then accounts (failures abort)
        5. Fetch and cache beneficiaries (failure caches an empty set, adds a warning)
        """
        start_time = time.time()
        existing = self.repository.get_by_credential_key(identity)
        target_environment = environment or (existing.environment if existing else self.config.default_environment)
        provider = self.providers.for_environment(target_environment)

        try:
            grant = await provider.issue_token(identity, secret)
            expires_at = expiry_from_lifetime(self.clock(), grant.expires_in)

            if existing is not None:
                session_id = existing.id
                if existing.credential_secret != secret:
                    self.repository.replace_secret(session_id, secret)
            else:
                session_id = self.repository.create_session(identity, secret, target_environment)
            self.repository.replace_token(session_id, grant.access_token, expires_at, target_environment)

            profile = await provider.get_profile(grant.access_token)
            self.repository.replace_profile(session_id, profile)

            accounts = await provider.get_accounts(grant.access_token)
            self.repository.replace_accounts(session_id, accounts, synced_at=self.clock())
        except ProviderError:
            authentication_counter.labels(outcome="failure").inc()
            raise

        warnings: List[str] = []
        try:
            beneficiaries = await provider.get_beneficiaries(
                grant.access_token, 0, self.config.beneficiary_page_limit
            )
            self.repository.replace_beneficiaries(session_id, beneficiaries, synced_at=self.clock())
        except ProviderError as e:
            logging.warning(f"Beneficiary sync failed during authentication: {e}", extra={"session_id": session_id})
            warnings.append(f"Beneficiaries could not be loaded: {e}")
            self.repository.replace_beneficiaries(session_id, [], synced_at=None)

        authentication_counter.labels(outcome="success").inc()
        log_authentication(
            session_id,
            target_environment,
            len(accounts),
            warnings,
            (time.time() - start_time) * 1000,
        )

        return AuthResult(
            session=SessionView(
                session_id=session_id,
                credential_key=identity,
                environment=target_environment,
                profile=profile,
                accounts=[AccountBalance.from_account(account) for account in accounts],
                access_token=grant.access_token,
                expires_at=expires_at,
            ),
            warnings=warnings,
        )

    def get_session(self, session_id: int) -> Optional[SessionView]:
        """Cached view of a session, no provider call"""
        record = self.repository.get_by_id(session_id)
        if record is None:
            return None
        return SessionView(
            session_id=record.id,
            credential_key=record.credential_key,
            environment=record.environment,
            profile=record.profile or {},
            accounts=[AccountBalance.from_account(a) for a in self.repository.get_cached_accounts(record.id)],
            access_token=record.access_token,
            expires_at=_aware(record.token_expires_at),
        )

    # Fetch-with-fallback

    async def refresh_accounts(self, session_id: int) -> Snapshot[AccountBalance]:
        """
        Refresh accounts from the provider, falling back to the cached snapshot.

        Raises:
            UnauthenticatedError: No session or no token
            TokenExpiredError: Token past expiry (checked before any provider call)
        """
        record = self._require_session(session_id)
        if is_expired(record.token_expires_at, self.clock()):
            raise TokenExpiredError("Access token expired, re-authentication required")

        try:
            accounts = await self._provider_for(record).get_accounts(record.access_token)
        except ProviderError as e:
            cache_fallback_counter.labels(resource="accounts").inc()
            log_cache_fallback(session_id, "accounts", e)
            cached = self.repository.get_cached_accounts(session_id)
            return Snapshot(
                items=[AccountBalance.from_account(account) for account in cached],
                stale=True,
                synced_at=_aware(record.accounts_synced_at),
            )

        synced_at = self.clock()
        self.repository.replace_accounts(session_id, accounts, synced_at)
        return Snapshot(
            items=[AccountBalance.from_account(account) for account in accounts],
            stale=False,
            synced_at=synced_at,
        )

    async def refresh_beneficiaries(
        self, session_id: int, offset: int = 0, limit: Optional[int] = None
    ) -> Snapshot[Beneficiary]:
        """Refresh beneficiaries from the provider, falling back to the cached snapshot"""
        record = self._require_session(session_id)
        page_limit = limit if limit is not None else self.config.beneficiary_page_limit

        try:
            beneficiaries = await self._provider_for(record).get_beneficiaries(
                record.access_token, offset, page_limit
            )
        except ProviderError as e:
            cache_fallback_counter.labels(resource="beneficiaries").inc()
            log_cache_fallback(session_id, "beneficiaries", e)
            return Snapshot(
                items=self.repository.get_cached_beneficiaries(session_id),
                stale=True,
                synced_at=_aware(record.beneficiaries_synced_at),
            )

        synced_at = self.clock()
        self.repository.replace_beneficiaries(session_id, beneficiaries, synced_at)
        return Snapshot(items=beneficiaries, stale=False, synced_at=synced_at)

    async def create_beneficiary(self, session_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a beneficiary, then resync the whole beneficiary list.

        The provider's list is canonical, so the new record is never appended
        to the cache locally. Returns the provider response verbatim.
        """
        record = self._require_session(session_id)
        result = await self._provider_for(record).create_beneficiary(record.access_token, data)
        await self.refresh_beneficiaries(session_id)
        return result

    async def get_account_movements(
        self, session_id: int, account_id: str, offset: int = 0, limit: int = 20
    ) -> List[Dict[str, Any]]:
        record = self._require_session(session_id)
        data = await self._provider_for(record).get_account_movements(
            record.access_token, account_id, offset, limit
        )
        rows = (data.get("rows") or []) if isinstance(data, dict) else []
        return convert_movements(rows)

    async def validate_account_number(self, session_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        record = self._require_session(session_id)
        return await self._provider_for(record).validate_account_number(record.access_token, data)

    async def validate_swift_code(self, session_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        record = self._require_session(session_id)
        return await self._provider_for(record).validate_swift_code(record.access_token, data)

    # Transfers

    async def simulate_transfer(self, session_id: int, intent: TransferIntent) -> Dict[str, Any]:
        """Quote a transfer; repeatable, no side effects on provider or cache"""
        record = self._require_session(session_id)
        try:
            result = await self._provider_for(record).simulate_transfer(
                record.access_token, intent.to_provider_payload()
            )
        except ProviderError as e:
            record_transfer("simulate", False)
            log_transfer(session_id, "simulate", "failure", e.code)
            raise

        record_transfer("simulate", True)
        log_transfer(session_id, "simulate", "success")
        return convert_simulation(result)

    async def request_transfer_sms(self, session_id: int, phone_number: str) -> SmsChallenge:
        """
        Obtain the 2FA code channel for a transfer.

        Authenticator users skip SMS even in demo environments; demo
        environments get the fixed code; everyone else gets a real SMS.
        """
        record = self._require_session(session_id)
        profile = record.profile or {}
        mode = decide_sms_mode(profile.get("twoFaType"), record.environment, self.config.demo_environments)
        sms_challenge_counter.labels(mode=mode.value).inc()
        log_transfer(session_id, "sms", mode.value)

        if mode is SmsMode.SKIPPED:
            return SmsChallenge(mode=mode, message="Authenticator app configured, use the app code")
        if mode is SmsMode.DEMO:
            code = self.config.demo_sms_code
            return SmsChallenge(mode=mode, message=f"Demo environment, use code {code}", demo_code=code)

        ack = await self._provider_for(record).request_sms_code(record.access_token, phone_number)
        return SmsChallenge(mode=mode, message="SMS code sent", ack=ack)

    async def execute_transfer(self, session_id: int, intent: TransferIntent) -> Dict[str, Any]:
        """Execute a transfer; balances change only after a later refresh_accounts"""
        record = self._require_session(session_id)
        try:
            result = await self._provider_for(record).execute_transfer(
                record.access_token, intent.to_provider_payload()
            )
        except ProviderError as e:
            record_transfer("execute", False)
            log_transfer(session_id, "execute", "failure", e.code)
            raise

        record_transfer("execute", True)
        log_transfer(session_id, "execute", "success")
        return convert_execution(result)

    def _require_session(self, session_id: int) -> SessionRecord:
        record = self.repository.get_by_id(session_id)
        if record is None or not record.access_token:
            raise UnauthenticatedError("User not authenticated")
        return record

    def _provider_for(self, record: SessionRecord) -> ProviderClient:
        return self.providers.for_environment(record.environment)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None
