"""
E2E tests running the real provider client against the mock provider server.

The mock server runs in-process through httpx.ASGITransport, so no network
or separately started server is needed.

Personas:
- clientA: SMS 2FA user with one USD account and one beneficiary
- clientB: authenticator-app user with an EUR account and no beneficiaries
"""

import httpx
import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from mocks.provider_server.main import app as provider_app, state as provider_state
from wallet_gateway.api.dependencies import get_provider_pool
from wallet_gateway.api.main import create_app
from wallet_gateway.config import Settings
from wallet_gateway.domain.exceptions import (
    ConflictError,
    CredentialsRejectedError,
    InsufficientFundsError,
    TokenExpiredError,
    TwoFactorRejectedError,
)
from wallet_gateway.domain.models import SmsMode
from wallet_gateway.domain.transfers import TransferIntent, TransferState
from wallet_gateway.infrastructure.clients.provider import ProviderClientPool
from wallet_gateway.infrastructure.database.repositories import SessionRepository
from wallet_gateway.infrastructure.database.session import get_db
from wallet_gateway.services.session_coordinator import SessionCoordinator
from wallet_gateway.services.transfer_workflow import TransferWorkflow

PROVIDER_URLS = {
    "development": "http://sandbox.provider.test/api/v3",
    "production": "http://live.provider.test/api/v3",
}


@pytest.fixture(autouse=True)
def reset_provider():
    provider_state.reset()
    yield
    provider_state.reset()


@pytest.fixture
def provider_pool() -> ProviderClientPool:
    return ProviderClientPool(
        urls=PROVIDER_URLS,
        device_id="e2e-device",
        transport=httpx.ASGITransport(app=provider_app),
    )


@pytest.fixture
def wallet(repository: SessionRepository, provider_pool: ProviderClientPool, clock, test_settings: Settings) -> SessionCoordinator:
    return SessionCoordinator(repository, provider_pool, clock=clock, config=test_settings)


@pytest.fixture
def gateway(db: Session, provider_pool: ProviderClientPool) -> TestClient:
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_provider_pool] = lambda: provider_pool
    return TestClient(app)


@pytest.mark.integration
async def test_client_a_login_syncs_everything(wallet: SessionCoordinator, repository: SessionRepository):
    result = await wallet.authenticate("clientA", "secretA", "development")

    session_id = result.session.session_id
    assert result.warnings == []
    assert result.session.accounts[0].balance == Decimal("100.00")
    assert repository.get_cached_accounts(session_id)[0].balance_cents == 10000
    assert repository.get_cached_beneficiaries(session_id)[0].country_code == "CU"


@pytest.mark.integration
async def test_bad_secret_rejected(wallet: SessionCoordinator):
    with pytest.raises(CredentialsRejectedError):
        await wallet.authenticate("clientA", "nope")


@pytest.mark.integration
async def test_offline_refresh_serves_cache(wallet: SessionCoordinator):
    result = await wallet.authenticate("clientA", "secretA")
    provider_state.failing.update({"accounts", "beneficiaries"})

    accounts = await wallet.refresh_accounts(result.session.session_id)
    beneficiaries = await wallet.refresh_beneficiaries(result.session.session_id)

    assert accounts.stale is True
    assert accounts.items == result.session.accounts
    assert beneficiaries.stale is True
    assert [b.beneficiary_id for b in beneficiaries.items] == ["ben1"]


@pytest.mark.integration
async def test_beneficiary_outage_during_login_is_a_warning(wallet: SessionCoordinator):
    provider_state.failing.add("beneficiaries")

    result = await wallet.authenticate("clientA", "secretA")

    assert len(result.warnings) == 1


@pytest.mark.integration
async def test_expired_token_requires_login(wallet: SessionCoordinator, clock):
    result = await wallet.authenticate("clientA", "secretA")
    clock.advance(hours=2)

    with pytest.raises(TokenExpiredError):
        await wallet.refresh_accounts(result.session.session_id)


@pytest.mark.integration
async def test_create_beneficiary_then_duplicate(wallet: SessionCoordinator, repository: SessionRepository):
    result = await wallet.authenticate("clientA", "secretA")
    session_id = result.session.session_id
    data = {"firstName": "Luis", "lastName": "Perez", "accountNumber": "CU002"}

    created = await wallet.create_beneficiary(session_id, data)

    assert created["accountNumber"] == "CU002"
    assert len(repository.get_cached_beneficiaries(session_id)) == 2
    with pytest.raises(ConflictError):
        await wallet.create_beneficiary(session_id, data)


@pytest.mark.integration
async def test_demo_transfer_flow_debits_after_refresh(wallet: SessionCoordinator):
    result = await wallet.authenticate("clientA", "secretA", "development")
    session_id = result.session.session_id
    workflow = TransferWorkflow(wallet, session_id)
    intent = TransferIntent(account_id="acc1", beneficiary_id="ben1", amount=Decimal("50.25"), currency="USD")

    quote = await workflow.simulate(intent)
    challenge = await workflow.request_code(intent, "+5355555555")
    receipt = await workflow.execute(intent, challenge.demo_code)

    assert quote["accountLeftBalance"] == Decimal("49.75")
    assert challenge.mode is SmsMode.DEMO
    assert provider_state.sms_sent == []
    assert receipt["amount"] == Decimal("50.25")
    assert intent.state is TransferState.EXECUTED

    # Cache only changes on the next refresh
    snapshot = await wallet.refresh_accounts(session_id)
    assert snapshot.items[0].balance == Decimal("49.75")


@pytest.mark.integration
async def test_wrong_code_and_insufficient_funds(wallet: SessionCoordinator):
    result = await wallet.authenticate("clientA", "secretA")
    session_id = result.session.session_id

    with pytest.raises(TwoFactorRejectedError):
        await wallet.execute_transfer(
            session_id,
            TransferIntent("acc1", "ben1", Decimal("10"), "USD", two_factor_code="000000"),
        )
    with pytest.raises(InsufficientFundsError):
        await wallet.execute_transfer(
            session_id,
            TransferIntent("acc1", "ben1", Decimal("1000"), "USD", two_factor_code="123456"),
        )


@pytest.mark.integration
async def test_authenticator_user_skips_sms(wallet: SessionCoordinator):
    result = await wallet.authenticate("clientB", "secretB", "development")

    challenge = await wallet.request_transfer_sms(result.session.session_id, "+34600000000")

    assert challenge.skip_sms is True
    assert provider_state.sms_sent == []


@pytest.mark.integration
async def test_production_sms_reaches_provider(wallet: SessionCoordinator):
    result = await wallet.authenticate("clientA", "secretA", "production")

    challenge = await wallet.request_transfer_sms(result.session.session_id, "+5355555555")

    assert challenge.mode is SmsMode.SENT
    assert provider_state.sms_sent == ["+5355555555"]


@pytest.mark.integration
async def test_validation_passthrough(wallet: SessionCoordinator):
    result = await wallet.authenticate("clientA", "secretA")
    session_id = result.session.session_id

    assert (await wallet.validate_account_number(session_id, {"accountNumber": "CU001"}))["valid"] is True
    assert (await wallet.validate_swift_code(session_id, {"swift": "BNMECUHH"}))["valid"] is True


@pytest.mark.integration
def test_gateway_login_and_accounts_over_http(gateway: TestClient):
    login = gateway.post("/v1/auth/login", json={"client_id": "clientB", "client_secret": "secretB"})
    assert login.status_code == 200
    session_id = login.json()["session"]["session_id"]

    accounts = gateway.get(f"/v1/accounts/{session_id}")

    assert accounts.status_code == 200
    account = accounts.json()["accounts"][0]
    assert account["balance"] == 2500.75
    assert account["pending_in"] == 10.0
    assert accounts.json()["stale"] is False


@pytest.mark.integration
def test_gateway_movements_over_http(gateway: TestClient):
    login = gateway.post("/v1/auth/login", json={"client_id": "clientA", "client_secret": "secretA"})
    session_id = login.json()["session"]["session_id"]

    response = gateway.get(f"/v1/accounts/{session_id}/acc1/movements")

    assert response.status_code == 200
    assert response.json()[0]["balanceAfter"] == 100.0
