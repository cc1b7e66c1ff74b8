"""Beneficiary list, creation and validation endpoints"""

from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, Query, Request

from wallet_gateway.api.v1.schemas import BeneficiariesResponse
from wallet_gateway.api.dependencies import get_coordinator, get_request_id
from wallet_gateway.api.errors import to_http_exception
from wallet_gateway.domain.exceptions import DomainException
from wallet_gateway.services.session_coordinator import SessionCoordinator

router = APIRouter()


@router.get("/beneficiaries/{session_id}", response_model=BeneficiariesResponse)
async def get_beneficiaries(
    session_id: int,
    request: Request,
    offset: int = Query(0, ge=0),
    limit: int | None = Query(None, ge=1, le=100),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    try:
        snapshot = await coordinator.refresh_beneficiaries(session_id, offset, limit)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return BeneficiariesResponse(
        session_id=session_id,
        beneficiaries=[b.payload for b in snapshot.items],
        stale=snapshot.stale,
        synced_at=snapshot.synced_at,
    )


@router.post("/beneficiaries/{session_id}", status_code=201)
async def create_beneficiary(
    session_id: int,
    request: Request,
    data: Dict[str, Any] = Body(...),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """Create a beneficiary at the provider; the local list is resynced afterwards"""
    try:
        return await coordinator.create_beneficiary(session_id, data)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))


@router.post("/beneficiaries/{session_id}/validate-account")
async def validate_account_number(
    session_id: int,
    request: Request,
    data: Dict[str, Any] = Body(...),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    try:
        return await coordinator.validate_account_number(session_id, data)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))


@router.post("/beneficiaries/{session_id}/validate-swift")
async def validate_swift_code(
    session_id: int,
    request: Request,
    data: Dict[str, Any] = Body(...),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    try:
        return await coordinator.validate_swift_code(session_id, data)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
