"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Dict, Generator
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from wallet_gateway.api.main import create_app
from wallet_gateway.api.dependencies import get_provider_pool
from wallet_gateway.config import Settings
from wallet_gateway.domain.exceptions import UnknownEnvironmentError
from wallet_gateway.domain.models import Account, Beneficiary, TokenGrant
from wallet_gateway.infrastructure.clients.provider import ProviderClient
from wallet_gateway.infrastructure.database.models import Base
from wallet_gateway.infrastructure.database.repositories import SessionRepository
from wallet_gateway.infrastructure.database.session import get_db
from wallet_gateway.services.session_coordinator import SessionCoordinator


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


class FrozenClock:
    """Injectable clock; tests move time with advance()"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class StubProviderPool:
    """Stands in for ProviderClientPool with one mocked client per environment"""

    def __init__(self, clients: Dict[str, AsyncMock]):
        self.clients = clients

    def environments(self) -> list[str]:
        return list(self.clients)

    def for_environment(self, environment: str):
        if environment not in self.clients:
            raise UnknownEnvironmentError(f"Unknown provider environment: {environment}")
        return self.clients[environment]


def make_provider(environment: str) -> AsyncMock:
    """Mocked provider client preloaded with one account and one beneficiary"""
    provider = AsyncMock(spec=ProviderClient)
    provider.environment = environment
    provider.issue_token.return_value = TokenGrant(access_token=f"tok-{environment}", expires_in=3600)
    provider.get_profile.return_value = {"id": "u-a", "email": "a@example.com", "twoFaType": 1}
    provider.get_accounts.return_value = [
        Account.from_provider(
            {"id": "acc1", "accountNumber": "ES001", "currency": "USD", "balance": 10000, "isDefault": True}
        )
    ]
    provider.get_beneficiaries.return_value = [
        Beneficiary.from_provider(
            {
                "id": "ben1",
                "firstName": "Ana",
                "lastName": "Diaz",
                "accountNumber": "CU001",
                "countryDestination": {"code": "CU", "name": "Cuba"},
            }
        )
    ]
    provider.request_sms_code.return_value = {"sent": True}
    return provider


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def repository(db: Session) -> SessionRepository:
    return SessionRepository(db)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(FIXED_NOW)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        default_environment="development",
        demo_environments=["development"],
        demo_sms_code="123456",
        beneficiary_page_limit=50,
    )


@pytest.fixture
def providers() -> StubProviderPool:
    return StubProviderPool(
        {
            "development": make_provider("development"),
            "production": make_provider("production"),
        }
    )


@pytest.fixture
def dev_provider(providers: StubProviderPool) -> AsyncMock:
    return providers.clients["development"]


@pytest.fixture
def prod_provider(providers: StubProviderPool) -> AsyncMock:
    return providers.clients["production"]


@pytest.fixture
def coordinator(
    repository: SessionRepository,
    providers: StubProviderPool,
    clock: FrozenClock,
    test_settings: Settings,
) -> SessionCoordinator:
    return SessionCoordinator(repository, providers, clock=clock, config=test_settings)


@pytest.fixture
def client(db: Session, providers: StubProviderPool) -> TestClient:
    """Create FastAPI test client with test database and mocked provider"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_provider_pool] = lambda: providers
    return TestClient(app)
