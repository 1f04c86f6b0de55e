"""SQLAlchemy ORM models, one table per TradeHub collection"""

import uuid
from sqlalchemy import Column, String, BigInteger, Boolean, Float, DateTime, Integer, ForeignKey, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship

from tradehub.utils.date_utils import utcnow

Base = declarative_base()


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class UserProfile(TimestampMixin, Base):
    """Customer profile created at signup"""

    __tablename__ = "user_profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, unique=True, index=True)
    first_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=True)
    email = Column(Text, nullable=True, index=True)
    phone = Column(Text, nullable=True)
    company = Column(Text, nullable=True)
    country = Column(Text, nullable=True)
    language = Column(String(8), nullable=False, default="ar")
    email_verified = Column(Boolean, nullable=False, default=False)
    phone_verified = Column(Boolean, nullable=False, default=False)
    verification_step = Column(Text, nullable=False, default="email")
    kyc_status = Column(Text, nullable=False, default="none")  # none | pending | approved | rejected
    profile_image_url = Column(Text, nullable=True)

    @property
    def full_name(self) -> str | None:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return None


class UserSettings(TimestampMixin, Base):
    """Notification and security preferences"""

    __tablename__ = "user_settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, unique=True, index=True)
    email_notifications = Column(Boolean, nullable=False, default=True)
    sms_notifications = Column(Boolean, nullable=False, default=True)
    push_notifications = Column(Boolean, nullable=False, default=False)
    login_alerts = Column(Boolean, nullable=False, default=False)
    two_factor_enabled = Column(Boolean, nullable=False, default=False)
    device_tracking = Column(Boolean, nullable=False, default=True)
    session_timeout = Column(Integer, nullable=False, default=30)  # minutes


class BankAccount(TimestampMixin, Base):
    """IBAN account holding the user's balance"""

    __tablename__ = "bank_accounts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    account_number = Column(Text, nullable=False)
    iban = Column(Text, nullable=False, unique=True, index=True)
    swift_code = Column(Text, nullable=False)
    bank_name = Column(Text, nullable=False)
    account_type = Column(Text, nullable=False)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="EUR")
    status = Column(Text, nullable=False, default="Pending")  # Pending | Active | Inactive | Suspended | Closed


class Transaction(TimestampMixin, Base):
    """Ledger line shown in the user's history; amount is signed"""

    __tablename__ = "transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False)  # sent | received | deposit | withdrawal
    amount_cents = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")
    recipient = Column(Text, nullable=True)
    sender = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    category = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    reference = Column(Text, nullable=True, index=True)
    method = Column(Text, nullable=True)
    receipt_url = Column(Text, nullable=True)
    mtcn = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="completed")
    reviewed_by = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)


class Recipient(TimestampMixin, Base):
    """Saved transfer contact"""

    __tablename__ = "recipients"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    type = Column(Text, nullable=False, default="individual")  # individual | business
    country = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    iban = Column(Text, nullable=True)
    bank_name = Column(Text, nullable=True)
    swift_code = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    last_used = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class VirtualCard(TimestampMixin, Base):
    """Virtual payment card; spending_limit and spent_amount are tracked independently"""

    __tablename__ = "virtual_cards"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    card_number = Column(Text, nullable=False)
    expiry_date = Column(String(5), nullable=False)
    cvv = Column(String(3), nullable=False)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="EUR")
    status = Column(Text, nullable=False, default="active")  # active | frozen | expired
    card_type = Column(Text, nullable=False, default="multi-use")  # single-use | multi-use
    spending_limit_cents = Column(BigInteger, nullable=False)
    spent_amount_cents = Column(BigInteger, nullable=False, default=0)
    card_brand = Column(Text, nullable=False, default="visa")  # visa | mastercard
    card_tier = Column(Text, nullable=False, default="classic")  # platinum | gold | classic


class Agent(TimestampMixin, Base):
    """Third-party cash agent"""

    __tablename__ = "agents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    code = Column(Text, nullable=False, unique=True)
    country = Column(Text, nullable=False)
    city = Column(Text, nullable=False)
    address = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    working_hours = Column(Text, nullable=False, default="")
    status = Column(Text, nullable=False, default="active")  # active | inactive | suspended
    commission_rate = Column(Float, nullable=False, default=2.5)
    max_transaction_cents = Column(BigInteger, nullable=False, default=0)
    min_transaction_cents = Column(BigInteger, nullable=False, default=0)
    supported_currencies = Column(JSON, nullable=False, default=list)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    rating = Column(Float, nullable=False, default=0.0)
    total_transactions = Column(Integer, nullable=False, default=0)

    locations = relationship("AgentLocation", back_populates="agent", cascade="all, delete-orphan")


class AgentLocation(TimestampMixin, Base):
    """Physical branch of an agent"""

    __tablename__ = "agent_locations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    agent_id = Column(UUID(as_uuid=True), ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=False)
    city = Column(Text, nullable=False)
    phone = Column(Text, nullable=True)
    working_hours = Column(Text, nullable=False, default="")
    status = Column(Text, nullable=False, default="active")  # active | inactive | maintenance
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    agent = relationship("Agent", back_populates="locations")


class AgentTransaction(TimestampMixin, Base):
    """Cash deposit/withdrawal through an agent, reconciled manually"""

    __tablename__ = "agent_transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    agent_id = Column(UUID(as_uuid=True), ForeignKey("agents.id"), nullable=False)
    agent_location_id = Column(UUID(as_uuid=True), ForeignKey("agent_locations.id"), nullable=True)
    transaction_type = Column(Text, nullable=False)  # deposit | withdrawal
    amount_cents = Column(BigInteger, nullable=False)
    currency = Column(String(3), nullable=False, default="EUR")
    commission_cents = Column(BigInteger, nullable=False, default=0)
    reference_code = Column(Text, nullable=False, index=True)
    status = Column(Text, nullable=False, default="pending")  # pending | completed | cancelled | failed
    notes = Column(Text, nullable=True)
    reviewed_by = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)


class Document(TimestampMixin, Base):
    """Requested statement, certificate or tax document"""

    __tablename__ = "documents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False)  # statement | certificate | tax-document
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    period = Column(Text, nullable=True)
    file_size = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="processing")  # processing | ready | expired
    download_url = Column(Text, nullable=True)


class Notification(TimestampMixin, Base):
    """In-app notification"""

    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    read = Column(Boolean, nullable=False, default=False)


class VerificationCode(Base):
    """One-time phone verification code"""

    __tablename__ = "verification_codes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    phone = Column(Text, nullable=False)
    code = Column(String(12), nullable=False)
    type = Column(Text, nullable=False, default="phone_verification")
    used = Column(Boolean, nullable=False, default=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class KYCSubmission(TimestampMixin, Base):
    """Identity documents uploaded for review"""

    __tablename__ = "kyc_submissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    national_id_url = Column(Text, nullable=True)
    passport_url = Column(Text, nullable=True)
    selfie_url = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="pending")  # pending | under_review | approved | rejected
    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
