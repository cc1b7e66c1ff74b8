"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from wallet_gateway.domain.models import AccountBalance, SessionView
from wallet_gateway.domain.transfers import TransferIntent


class LoginRequest(BaseModel):
    """Request body for POST /v1/auth/login"""

    client_id: str = Field(..., min_length=1, description="Provider client id (local identity key)")
    client_secret: str = Field(..., min_length=1, description="Provider client secret")
    environment: Optional[str] = Field(None, description="Provider environment, e.g. development or production")


class AccountSchema(BaseModel):
    """Account with major-unit amounts"""

    account_id: str
    currency: str
    balance: float
    available: float
    pending_in: float
    pending_out: float
    account_number: str = ""
    alias: Optional[str] = None
    type: Optional[int] = None
    is_default: bool = False

    @classmethod
    def from_balance(cls, account: AccountBalance) -> "AccountSchema":
        return cls(
            account_id=account.account_id,
            currency=account.currency,
            balance=float(account.balance),
            available=float(account.available),
            pending_in=float(account.pending_in),
            pending_out=float(account.pending_out),
            account_number=account.account_number,
            alias=account.alias,
            type=account.type,
            is_default=account.is_default,
        )


class SessionSchema(BaseModel):
    session_id: int
    client_id: str
    environment: str
    profile: Dict[str, Any]
    accounts: List[AccountSchema]
    token: Optional[str] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_view(cls, view: SessionView) -> "SessionSchema":
        return cls(
            session_id=view.session_id,
            client_id=view.credential_key,
            environment=view.environment,
            profile=view.profile,
            accounts=[AccountSchema.from_balance(a) for a in view.accounts],
            token=view.access_token,
            expires_at=view.expires_at,
        )


class LoginResponse(BaseModel):
    """Response for POST /v1/auth/login"""

    session: SessionSchema
    warnings: List[str] = []


class EnvironmentsResponse(BaseModel):
    """Response for GET /v1/auth/environments"""

    environments: List[str]
    default: str
    demo: List[str]


class AccountsResponse(BaseModel):
    """Response for GET /v1/accounts/{session_id}"""

    session_id: int
    accounts: List[AccountSchema]
    stale: bool
    synced_at: Optional[datetime] = None


class BeneficiariesResponse(BaseModel):
    """Response for GET /v1/beneficiaries/{session_id}"""

    session_id: int
    beneficiaries: List[Dict[str, Any]]
    stale: bool
    synced_at: Optional[datetime] = None


class SmsRequest(BaseModel):
    """Request body for POST /v1/transfers/{session_id}/sms"""

    phone_number: str = Field(..., min_length=1)


class SmsResponse(BaseModel):
    skip_sms: bool
    demo_mode: bool
    demo_code: Optional[str] = None
    message: str
    ack: Optional[Dict[str, Any]] = None


class TransferRequest(BaseModel):
    """Request body for POST /v1/transfers/{session_id}/simulate and /execute"""

    account_id: str = Field(..., min_length=1, description="Source account id")
    beneficiary_id: str = Field(..., min_length=1, description="Destination beneficiary id")
    amount: Decimal = Field(..., gt=0, description="Amount in major units, e.g. 50.25")
    currency: str = Field(..., min_length=3, max_length=3)
    destination_amount: Optional[Decimal] = Field(None, gt=0)
    security_code: Optional[str] = Field(None, description="2FA code, required by the provider at execution")
    reason: Optional[str] = None

    def to_intent(self) -> TransferIntent:
        return TransferIntent(
            account_id=self.account_id,
            beneficiary_id=self.beneficiary_id,
            amount=self.amount,
            currency=self.currency.upper(),
            destination_amount=self.destination_amount,
            two_factor_code=self.security_code,
            reason=self.reason,
        )
