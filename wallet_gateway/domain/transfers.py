"""Transfer intent state machine and provider payload conversion"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from wallet_gateway.domain.currency import convert_fields_to_major, to_minor
from wallet_gateway.domain.exceptions import InvalidTransitionError
from wallet_gateway.domain.models import TWO_FA_AUTHENTICATOR, SmsMode

SIMULATION_AMOUNT_FIELDS = ("amountToPay", "amountToGet", "amountToGetInEUR", "fees", "accountLeftBalance")
EXECUTION_AMOUNT_FIELDS = ("amount", "destinationAmount")
MOVEMENT_AMOUNT_FIELDS = ("amount", "balanceBefore", "balanceAfter", "destinationAmount", "originalCurrencyAmount")


class TransferState(str, Enum):
    DRAFT = "draft"
    SIMULATED = "simulated"
    TWO_FACTOR_PENDING = "two_factor_pending"
    EXECUTED = "executed"
    FAILED = "failed"


ALLOWED_TRANSITIONS: Dict[TransferState, frozenset] = {
    TransferState.DRAFT: frozenset({TransferState.SIMULATED, TransferState.FAILED}),
    # Simulation is repeatable, so SIMULATED -> SIMULATED re-quotes
    TransferState.SIMULATED: frozenset(
        {TransferState.SIMULATED, TransferState.TWO_FACTOR_PENDING, TransferState.EXECUTED, TransferState.FAILED}
    ),
    TransferState.TWO_FACTOR_PENDING: frozenset({TransferState.EXECUTED, TransferState.FAILED}),
    TransferState.EXECUTED: frozenset(),
    TransferState.FAILED: frozenset(),
}


@dataclass
class TransferIntent:
    """
    Ephemeral transfer request, never persisted.

    Amounts are major units; conversion to minor units happens each time a
    provider payload is built, so simulate and execute never share a value.
    """

    account_id: str
    beneficiary_id: str
    amount: Decimal
    currency: str
    destination_amount: Optional[Decimal] = None
    two_factor_code: Optional[str] = None
    reason: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    state: TransferState = TransferState.DRAFT
    quote: Optional[Dict[str, Any]] = None
    result: Optional[Dict[str, Any]] = None

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.state]

    def can_advance(self, target: TransferState) -> bool:
        return target in ALLOWED_TRANSITIONS[self.state]

    def advance(self, target: TransferState) -> None:
        """Move to target state or raise InvalidTransitionError"""
        if not self.can_advance(target):
            raise InvalidTransitionError(f"Cannot move transfer from {self.state.value} to {target.value}")
        self.state = target

    def to_provider_payload(self) -> Dict[str, Any]:
        """Build the simulate/execute request body with amounts in minor units"""
        amount_cents = to_minor(self.amount)
        payload: Dict[str, Any] = {
            **self.extra,
            "accountId": self.account_id,
            "depositaccountId": self.beneficiary_id,
            "currency": self.currency,
            "amount": amount_cents,
            "amountToPay": amount_cents,
        }
        if self.destination_amount is not None:
            payload["destinationAmount"] = to_minor(self.destination_amount)
        if self.reason:
            payload["reasonDes"] = self.reason
        if self.two_factor_code:
            payload["securityCode"] = self.two_factor_code
        return payload


def convert_simulation(result: Dict[str, Any]) -> Dict[str, Any]:
    return convert_fields_to_major(result, SIMULATION_AMOUNT_FIELDS)


def convert_execution(result: Dict[str, Any]) -> Dict[str, Any]:
    return convert_fields_to_major(result, EXECUTION_AMOUNT_FIELDS)


def convert_movements(rows: Iterable[Dict[str, Any]]) -> list[Dict[str, Any]]:
    return [convert_fields_to_major(row, MOVEMENT_AMOUNT_FIELDS) for row in rows]


def decide_sms_mode(two_fa_type: Any, environment: str, demo_environments: Iterable[str]) -> SmsMode:
    """
    Decide how the transfer 2FA code is obtained.

    Evaluated in strict order:
    1. Authenticator app configured -> SKIPPED (even in demo environments)
    2. Demo environment -> DEMO (fixed code, provider never contacted)
    3. Otherwise -> SENT (real SMS dispatch)
    """
    try:
        is_authenticator = int(two_fa_type) == TWO_FA_AUTHENTICATOR
    except (TypeError, ValueError):
        is_authenticator = False

    if is_authenticator:
        return SmsMode.SKIPPED
    if environment in set(demo_environments):
        return SmsMode.DEMO
    return SmsMode.SENT
