"""SQLAlchemy ORM models for the local wallet cache"""

from sqlalchemy import Column, String, BigInteger, Boolean, DateTime, Integer, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class SessionRecord(Base):
    """One local identity's relationship with the provider"""

    __tablename__ = "wallet_session"

    id = Column(Integer, primary_key=True, autoincrement=True)
    credential_key = Column(Text, nullable=False, unique=True, index=True)
    credential_secret = Column(Text, nullable=False)
    environment = Column(String(32), nullable=False)
    access_token = Column(Text, nullable=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)
    profile = Column(JSON, nullable=True)
    accounts_synced_at = Column(DateTime(timezone=True), nullable=True)
    beneficiaries_synced_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    accounts = relationship(
        "CachedAccount",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="CachedAccount.position",
    )
    beneficiaries = relationship(
        "CachedBeneficiary",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="CachedBeneficiary.position",
    )


class CachedAccount(Base):
    """Account snapshot row; amounts in minor units"""

    __tablename__ = "cached_account"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey("wallet_session.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    account_id = Column(Text, nullable=False)
    account_number = Column(Text, nullable=False, default="")
    currency = Column(String(8), nullable=False)
    alias = Column(Text, nullable=True)
    type = Column(Integer, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    available_cents = Column(BigInteger, nullable=False, default=0)
    pending_in_cents = Column(BigInteger, nullable=False, default=0)
    pending_out_cents = Column(BigInteger, nullable=False, default=0)

    session = relationship("SessionRecord", back_populates="accounts")


class CachedBeneficiary(Base):
    """Beneficiary snapshot row with the provider's full record"""

    __tablename__ = "cached_beneficiary"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey("wallet_session.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    beneficiary_id = Column(Text, nullable=False)
    account_number = Column(Text, nullable=False, default="")
    first_name = Column(Text, nullable=False, default="")
    last_name = Column(Text, nullable=False, default="")
    alias = Column(Text, nullable=True)
    bank_code = Column(Text, nullable=True)
    country_code = Column(String(8), nullable=True)
    country_name = Column(Text, nullable=True)
    type = Column(Integer, nullable=False, default=0)
    state = Column(Text, nullable=False, default="active")
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    payload = Column(JSON, nullable=False)

    session = relationship("SessionRecord", back_populates="beneficiaries")
