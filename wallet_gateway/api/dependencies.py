"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from wallet_gateway.infrastructure.clients.provider import ProviderClientPool
from wallet_gateway.infrastructure.database.repositories import SessionRepository
from wallet_gateway.infrastructure.database.session import get_db
from wallet_gateway.services.session_coordinator import SessionCoordinator


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_provider_pool() -> ProviderClientPool:
    """Provide wallet provider clients for all configured environments"""
    return ProviderClientPool()


def get_coordinator(
    db: Session = Depends(get_db),
    providers: ProviderClientPool = Depends(get_provider_pool),
) -> SessionCoordinator:
    """One coordinator per request, bound to the request's database session"""
    return SessionCoordinator(SessionRepository(db), providers)
