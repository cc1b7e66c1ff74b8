"""GET /v1/accounts/{session_id} - accounts with cache fallback, and movements"""

from fastapi import APIRouter, Depends, Query, Request

from wallet_gateway.api.v1.schemas import AccountsResponse, AccountSchema
from wallet_gateway.api.dependencies import get_coordinator, get_request_id
from wallet_gateway.api.errors import to_http_exception
from wallet_gateway.domain.exceptions import DomainException
from wallet_gateway.services.session_coordinator import SessionCoordinator

router = APIRouter()


@router.get("/accounts/{session_id}", response_model=AccountsResponse)
async def get_accounts(
    session_id: int,
    request: Request,
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Refresh accounts from the provider.

    Returns:
        Accounts in major units; stale=true when served from the local cache
    """
    try:
        snapshot = await coordinator.refresh_accounts(session_id)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return AccountsResponse(
        session_id=session_id,
        accounts=[AccountSchema.from_balance(a) for a in snapshot.items],
        stale=snapshot.stale,
        synced_at=snapshot.synced_at,
    )


@router.get("/accounts/{session_id}/{account_id}/movements")
async def get_account_movements(
    session_id: int,
    account_id: str,
    request: Request,
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """Account movements in major units (not cached)"""
    try:
        return await coordinator.get_account_movements(session_id, account_id, offset, limit)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
