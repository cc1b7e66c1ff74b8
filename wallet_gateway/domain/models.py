"""Domain models - pure Python dataclasses representing wallet entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from wallet_gateway.domain.currency import to_major

T = TypeVar("T")

# Profile twoFaType values reported by the provider
TWO_FA_SMS = 1
TWO_FA_AUTHENTICATOR = 2


@dataclass
class TokenGrant:
    """Access token issued by the provider"""

    access_token: str
    expires_in: int  # seconds


@dataclass
class Account:
    """Balance-bearing account; all amounts in minor units (cents)"""

    account_id: str
    currency: str
    balance_cents: int
    available_cents: int
    pending_in_cents: int = 0
    pending_out_cents: int = 0
    account_number: str = ""
    alias: Optional[str] = None
    type: Optional[int] = None
    is_default: bool = False

    @classmethod
    def from_provider(cls, data: Dict[str, Any]) -> "Account":
        if data.get("id") is None or not data.get("currency"):
            raise ValueError(f"Account row missing id or currency: {data}")
        balance = int(data.get("balance") or 0)
        available = data.get("available")
        return cls(
            account_id=str(data["id"]),
            currency=data["currency"],
            balance_cents=balance,
            available_cents=int(available) if available is not None else balance,
            pending_in_cents=int(data.get("pendingIn") or 0),
            pending_out_cents=int(data.get("pendingOut") or 0),
            account_number=data.get("accountNumber") or "",
            alias=data.get("alias"),
            type=data.get("type"),
            is_default=bool(data.get("isDefault", False)),
        )


@dataclass
class AccountBalance:
    """Major-unit view of an Account; produced for output only, never persisted"""

    account_id: str
    currency: str
    balance: Decimal
    available: Decimal
    pending_in: Decimal
    pending_out: Decimal
    account_number: str = ""
    alias: Optional[str] = None
    type: Optional[int] = None
    is_default: bool = False

    @classmethod
    def from_account(cls, account: Account) -> "AccountBalance":
        return cls(
            account_id=account.account_id,
            currency=account.currency,
            balance=to_major(account.balance_cents),
            available=to_major(account.available_cents),
            pending_in=to_major(account.pending_in_cents),
            pending_out=to_major(account.pending_out_cents),
            account_number=account.account_number,
            alias=account.alias,
            type=account.type,
            is_default=account.is_default,
        )


@dataclass
class Beneficiary:
    """Transfer recipient; payload keeps the provider's full record"""

    beneficiary_id: str
    first_name: str
    last_name: str
    account_number: str
    alias: Optional[str] = None
    bank_code: Optional[str] = None
    country_code: Optional[str] = None
    country_name: Optional[str] = None
    type: int = 0
    state: str = "active"
    email: Optional[str] = None
    phone: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_provider(cls, data: Dict[str, Any]) -> "Beneficiary":
        if data.get("id") is None:
            raise ValueError(f"Beneficiary row missing id: {data}")
        country = data.get("countryDestination") or {}
        first_name = data.get("firstName") or data.get("first_name") or ""
        last_name = data.get("lastName") or data.get("last_name") or ""
        return cls(
            beneficiary_id=str(data["id"]),
            first_name=first_name,
            last_name=last_name,
            account_number=data.get("accountNumber") or data.get("account_number") or "",
            alias=data.get("alias") or f"{first_name} {last_name}".strip(),
            bank_code=data.get("swift") or data.get("bankCode"),
            country_code=country.get("code") or data.get("country_code"),
            country_name=country.get("name") or data.get("country_name"),
            type=int(data.get("type") or 0),
            state=str(data.get("state") or "active"),
            email=data.get("email") or None,
            phone=data.get("phone") or None,
            payload=dict(data),
        )


@dataclass
class Snapshot(Generic[T]):
    """
    Result of a fetch-with-fallback refresh.

    stale is True when the provider call failed and items come from the local
    cache; synced_at is when the returned set was last fetched from the provider.
    """

    items: List[T]
    stale: bool
    synced_at: Optional[datetime]


@dataclass
class SessionView:
    """Authenticated session as returned to callers"""

    session_id: int
    credential_key: str
    environment: str
    profile: Dict[str, Any]
    accounts: List[AccountBalance]
    access_token: Optional[str]
    expires_at: Optional[datetime]


@dataclass
class AuthResult:
    """Authentication outcome; warnings lists non-fatal sync failures"""

    session: SessionView
    warnings: List[str] = field(default_factory=list)


class SmsMode(str, Enum):
    SKIPPED = "skipped"  # authenticator app configured
    DEMO = "demo"  # demo environment, fixed code
    SENT = "sent"


@dataclass
class SmsChallenge:
    """Outcome of a transfer SMS request"""

    mode: SmsMode
    message: str
    demo_code: Optional[str] = None
    ack: Optional[Dict[str, Any]] = None

    @property
    def skip_sms(self) -> bool:
        return self.mode is SmsMode.SKIPPED
