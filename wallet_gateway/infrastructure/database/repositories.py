"""Data access layer for the local wallet cache"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from wallet_gateway.infrastructure.database.models import SessionRecord, CachedAccount, CachedBeneficiary
from wallet_gateway.domain.models import Account, Beneficiary


class SessionRepository:
    """
    Repository for sessions and their cached resource snapshots.

    Every write replaces one resource type for one session and commits on its
    own, so a failed refresh never leaves a half-written snapshot behind.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_credential_key(self, credential_key: str) -> Optional[SessionRecord]:
        return (
            self.db.query(SessionRecord)
            .filter(SessionRecord.credential_key == credential_key)
            .first()
        )

    def get_by_id(self, session_id: int) -> Optional[SessionRecord]:
        return self.db.get(SessionRecord, session_id)

    def create_session(self, credential_key: str, credential_secret: str, environment: str) -> int:
        """Register a local identity and return its id"""
        record = SessionRecord(
            credential_key=credential_key,
            credential_secret=credential_secret,
            environment=environment,
        )
        self.db.add(record)
        self._commit()
        return record.id

    def replace_token(self, session_id: int, access_token: str, expires_at: datetime, environment: str) -> None:
        """Overwrite the token; the previous one is discarded, never merged"""
        record = self._require(session_id)
        record.access_token = access_token
        record.token_expires_at = expires_at
        record.environment = environment
        self._commit()

    def replace_secret(self, session_id: int, credential_secret: str) -> None:
        """Store the secret the provider last accepted for this identity"""
        record = self._require(session_id)
        record.credential_secret = credential_secret
        self._commit()

    def replace_profile(self, session_id: int, profile: Dict[str, Any]) -> None:
        record = self._require(session_id)
        record.profile = profile
        self._commit()

    def replace_accounts(self, session_id: int, accounts: List[Account], synced_at: datetime) -> None:
        """Wholesale replace of the account snapshot (minor units)"""
        record = self._require(session_id)
        self.db.query(CachedAccount).filter(CachedAccount.session_id == session_id).delete()
        for position, account in enumerate(accounts):
            self.db.add(
                CachedAccount(
                    session_id=session_id,
                    position=position,
                    account_id=account.account_id,
                    account_number=account.account_number,
                    currency=account.currency,
                    alias=account.alias,
                    type=account.type,
                    is_default=account.is_default,
                    balance_cents=account.balance_cents,
                    available_cents=account.available_cents,
                    pending_in_cents=account.pending_in_cents,
                    pending_out_cents=account.pending_out_cents,
                )
            )
        record.accounts_synced_at = synced_at
        self._commit()

    def replace_beneficiaries(
        self,
        session_id: int,
        beneficiaries: List[Beneficiary],
        synced_at: Optional[datetime],
    ) -> None:
        """Wholesale replace of the beneficiary snapshot"""
        record = self._require(session_id)
        self.db.query(CachedBeneficiary).filter(CachedBeneficiary.session_id == session_id).delete()
        for position, beneficiary in enumerate(beneficiaries):
            self.db.add(
                CachedBeneficiary(
                    session_id=session_id,
                    position=position,
                    beneficiary_id=beneficiary.beneficiary_id,
                    account_number=beneficiary.account_number,
                    first_name=beneficiary.first_name,
                    last_name=beneficiary.last_name,
                    alias=beneficiary.alias,
                    bank_code=beneficiary.bank_code,
                    country_code=beneficiary.country_code,
                    country_name=beneficiary.country_name,
                    type=beneficiary.type,
                    state=beneficiary.state,
                    email=beneficiary.email,
                    phone=beneficiary.phone,
                    payload=beneficiary.payload,
                )
            )
        record.beneficiaries_synced_at = synced_at
        self._commit()

    def get_cached_accounts(self, session_id: int) -> List[Account]:
        rows = (
            self.db.query(CachedAccount)
            .filter(CachedAccount.session_id == session_id)
            .order_by(CachedAccount.position)
            .all()
        )
        return [
            Account(
                account_id=row.account_id,
                currency=row.currency,
                balance_cents=row.balance_cents,
                available_cents=row.available_cents,
                pending_in_cents=row.pending_in_cents,
                pending_out_cents=row.pending_out_cents,
                account_number=row.account_number,
                alias=row.alias,
                type=row.type,
                is_default=row.is_default,
            )
            for row in rows
        ]

    def get_cached_beneficiaries(self, session_id: int) -> List[Beneficiary]:
        rows = (
            self.db.query(CachedBeneficiary)
            .filter(CachedBeneficiary.session_id == session_id)
            .order_by(CachedBeneficiary.position)
            .all()
        )
        return [
            Beneficiary(
                beneficiary_id=row.beneficiary_id,
                first_name=row.first_name,
                last_name=row.last_name,
                account_number=row.account_number,
                alias=row.alias,
                bank_code=row.bank_code,
                country_code=row.country_code,
                country_name=row.country_name,
                type=row.type,
                state=row.state,
                email=row.email,
                phone=row.phone,
                payload=row.payload or {},
            )
            for row in rows
        ]

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            # A failed flush leaves the session unusable until rolled back
            self.db.rollback()
            raise

    def _require(self, session_id: int) -> SessionRecord:
        record = self.get_by_id(session_id)
        if record is None:
            raise LookupError(f"Session {session_id} not found")
        return record
