"""Transfer endpoints: 2FA code request, simulation and execution"""

from fastapi import APIRouter, Depends, Request

from wallet_gateway.api.v1.schemas import SmsRequest, SmsResponse, TransferRequest
from wallet_gateway.api.dependencies import get_coordinator, get_request_id
from wallet_gateway.api.errors import to_http_exception
from wallet_gateway.domain.exceptions import DomainException
from wallet_gateway.domain.models import SmsMode
from wallet_gateway.services.session_coordinator import SessionCoordinator

router = APIRouter()


@router.post("/transfers/{session_id}/sms", response_model=SmsResponse)
async def request_transfer_sms(
    session_id: int,
    request_body: SmsRequest,
    request: Request,
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Request the 2FA code for a transfer.

    Authenticator users get skip_sms=true; demo environments get the fixed
    demo code without contacting the provider.
    """
    try:
        challenge = await coordinator.request_transfer_sms(session_id, request_body.phone_number)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return SmsResponse(
        skip_sms=challenge.skip_sms,
        demo_mode=challenge.mode is SmsMode.DEMO,
        demo_code=challenge.demo_code,
        message=challenge.message,
        ack=challenge.ack,
    )


@router.post("/transfers/{session_id}/simulate")
async def simulate_transfer(
    session_id: int,
    request_body: TransferRequest,
    request: Request,
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """Quote a transfer; amounts in the response are major units"""
    try:
        return await coordinator.simulate_transfer(session_id, request_body.to_intent())
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))


@router.post("/transfers/{session_id}/execute")
async def execute_transfer(
    session_id: int,
    request_body: TransferRequest,
    request: Request,
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """Execute a transfer; refresh accounts afterwards to see the new balance"""
    try:
        return await coordinator.execute_transfer(session_id, request_body.to_intent())
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
