"""Drives one TransferIntent through simulate -> (2FA) -> execute"""

from typing import Any, Dict

from wallet_gateway.domain.exceptions import DomainException, InvalidTransitionError
from wallet_gateway.domain.models import SmsChallenge
from wallet_gateway.domain.transfers import TransferIntent, TransferState
from wallet_gateway.services.session_coordinator import SessionCoordinator


class TransferWorkflow:
    """
    Stateful wrapper around the coordinator's stateless transfer calls.

    Any failure moves the intent to FAILED and is re-raised. The intent is
    never persisted; once EXECUTED or FAILED it should be discarded.
    """

    def __init__(self, coordinator: SessionCoordinator, session_id: int):
        self.coordinator = coordinator
        self.session_id = session_id

    async def simulate(self, intent: TransferIntent) -> Dict[str, Any]:
        self._ensure_can_move(intent, TransferState.SIMULATED)
        try:
            quote = await self.coordinator.simulate_transfer(self.session_id, intent)
        except DomainException:
            intent.advance(TransferState.FAILED)
            raise
        intent.quote = quote
        intent.advance(TransferState.SIMULATED)
        return quote

    async def request_code(self, intent: TransferIntent, phone_number: str) -> SmsChallenge:
        self._ensure_can_move(intent, TransferState.TWO_FACTOR_PENDING)
        try:
            challenge = await self.coordinator.request_transfer_sms(self.session_id, phone_number)
        except DomainException:
            intent.advance(TransferState.FAILED)
            raise
        intent.advance(TransferState.TWO_FACTOR_PENDING)
        return challenge

    async def execute(self, intent: TransferIntent, two_factor_code: str | None = None) -> Dict[str, Any]:
        self._ensure_can_move(intent, TransferState.EXECUTED)
        if two_factor_code is not None:
            intent.two_factor_code = two_factor_code
        try:
            result = await self.coordinator.execute_transfer(self.session_id, intent)
        except DomainException:
            intent.advance(TransferState.FAILED)
            raise
        intent.result = result
        intent.advance(TransferState.EXECUTED)
        return result

    @staticmethod
    def _ensure_can_move(intent: TransferIntent, target: TransferState) -> None:
        # Out-of-order steps are rejected before any provider call
        if not intent.can_advance(target):
            raise InvalidTransitionError(f"Cannot move transfer from {intent.state.value} to {target.value}")
