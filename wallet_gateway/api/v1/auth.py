"""POST /v1/auth/login and GET /v1/auth/environments"""

from fastapi import APIRouter, Depends, Request

from wallet_gateway.api.v1.schemas import LoginRequest, LoginResponse, SessionSchema, EnvironmentsResponse
from wallet_gateway.api.dependencies import get_coordinator, get_provider_pool, get_request_id
from wallet_gateway.api.errors import to_http_exception
from wallet_gateway.config import settings
from wallet_gateway.domain.exceptions import DomainException
from wallet_gateway.infrastructure.clients.provider import ProviderClientPool
from wallet_gateway.services.session_coordinator import SessionCoordinator

router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
async def login(
    request_body: LoginRequest,
    request: Request,
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Authenticate with the provider and sync the local cache.

    First login for a client id registers the local session. A beneficiary
    sync failure does not fail the login; it is reported in warnings.
    """
    try:
        result = await coordinator.authenticate(
            request_body.client_id,
            request_body.client_secret,
            request_body.environment,
        )
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return LoginResponse(session=SessionSchema.from_view(result.session), warnings=result.warnings)


@router.get("/auth/environments", response_model=EnvironmentsResponse)
def list_environments(providers: ProviderClientPool = Depends(get_provider_pool)):
    """List configured provider environments"""
    return EnvironmentsResponse(
        environments=providers.environments(),
        default=settings.default_environment,
        demo=settings.demo_environments,
    )
