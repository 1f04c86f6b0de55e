"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ORMModel(BaseModel):
    """Base for responses built from ORM rows"""

    model_config = ConfigDict(from_attributes=True)


# Profiles / account / settings

class SignupRequest(BaseModel):
    """Request body for POST /v1/profiles"""

    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: Optional[str] = None
    company: Optional[str] = None
    country: Optional[str] = None
    language: str = "ar"


class ProfileResponse(ORMModel):
    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    country: Optional[str] = None
    language: str
    email_verified: bool
    phone_verified: bool
    verification_step: str
    kyc_status: str
    profile_image_url: Optional[str] = None


class AccountResponse(ORMModel):
    id: UUID
    user_id: str
    account_number: str
    iban: str
    swift_code: str
    bank_name: str
    account_type: str
    balance_cents: int
    currency: str
    status: str
    created_at: datetime


class SignupResponse(BaseModel):
    profile: ProfileResponse
    account: AccountResponse


class AccountLookupResponse(BaseModel):
    """Public view of an account found by IBAN"""

    iban: str
    bank_name: str
    swift_code: str
    holder_name: Optional[str] = None


class SettingsResponse(ORMModel):
    email_notifications: bool
    sms_notifications: bool
    push_notifications: bool
    login_alerts: bool
    two_factor_enabled: bool
    device_tracking: bool
    session_timeout: int


class SettingsUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    login_alerts: Optional[bool] = None
    two_factor_enabled: Optional[bool] = None
    device_tracking: Optional[bool] = None
    session_timeout: Optional[int] = Field(None, ge=1, le=24 * 60)


# Transactions / transfers

class TransactionResponse(ORMModel):
    id: UUID
    type: str
    amount_cents: int
    currency: str
    recipient: Optional[str] = None
    sender: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    reference: Optional[str] = None
    method: Optional[str] = None
    status: str
    rejection_reason: Optional[str] = None
    created_at: datetime


class NewRecipient(BaseModel):
    """Recipient entered inline on the transfer form"""

    name: str = Field(..., min_length=1)
    type: Literal["individual", "business"] = "individual"
    country: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    iban: Optional[str] = None
    bank_name: Optional[str] = None
    swift_code: Optional[str] = None


class TransferRequest(BaseModel):
    """Request body for POST /v1/transfers"""

    amount_cents: int = Field(..., gt=0, description="Amount to send in cents")
    recipient_id: Optional[UUID] = None
    new_recipient: Optional[NewRecipient] = None
    save_recipient: bool = False
    purpose: Optional[str] = None


class TransferResponse(BaseModel):
    reference: str
    amount_cents: int
    new_balance_cents: int
    sender_transaction_id: str
    recipient_credited: bool
    recipient_transaction_id: Optional[str] = None


class WithdrawalRequest(BaseModel):
    """Request body for POST /v1/withdrawals"""

    amount_cents: int = Field(..., gt=0)
    method: Literal["western-union", "agents"]
    agent_id: Optional[UUID] = None
    recipient_name: Optional[str] = None
    pickup_location: Optional[str] = None
    notes: Optional[str] = None


class WithdrawalResponse(BaseModel):
    reference: str
    amount_cents: int
    transaction_id: str
    agent_transaction_id: Optional[str] = None
    contact_link: Optional[str] = None


class TopUpRequest(BaseModel):
    """Request body for POST /v1/topups"""

    amount_cents: int = Field(..., gt=0)
    method: Literal["western-union", "bank-transfer", "agents"]
    mtcn: Optional[str] = Field(None, description="Western Union Money Transfer Control Number")
    sender_name: Optional[str] = None
    receipt_url: Optional[str] = None
    agent_id: Optional[UUID] = None


# Recipients

class RecipientCreate(NewRecipient):
    pass


class RecipientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[Literal["individual", "business"]] = None
    country: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    iban: Optional[str] = None
    bank_name: Optional[str] = None
    swift_code: Optional[str] = None


class RecipientResponse(ORMModel):
    id: UUID
    name: str
    type: str
    country: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    iban: Optional[str] = None
    bank_name: Optional[str] = None
    swift_code: Optional[str] = None
    avatar_url: Optional[str] = None
    last_used: datetime


# Cards

class CardCreate(BaseModel):
    name: str = Field(..., min_length=1)
    card_type: Literal["single-use", "multi-use"] = "multi-use"
    spending_limit_cents: int = Field(..., gt=0)
    card_brand: Literal["visa", "mastercard"] = "visa"
    card_tier: Literal["platinum", "gold", "classic"] = "classic"


class CardStatusUpdate(BaseModel):
    status: Literal["active", "frozen"]


class CardSpendRequest(BaseModel):
    amount_cents: int = Field(..., gt=0)


class CardResponse(ORMModel):
    id: UUID
    name: str
    card_number: str
    expiry_date: str
    cvv: str
    balance_cents: int
    currency: str
    status: str
    card_type: str
    spending_limit_cents: int
    spent_amount_cents: int
    card_brand: str
    card_tier: str
    created_at: datetime


# Agents

class AgentCreate(BaseModel):
    name: str
    code: str
    country: str
    city: str
    address: str
    phone: str
    email: Optional[str] = None
    working_hours: str = ""
    commission_rate: float = 2.5
    max_transaction_cents: int = 0
    min_transaction_cents: int = 0
    supported_currencies: List[str] = ["EUR"]
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    rating: float = 0.0


class AgentResponse(ORMModel):
    id: UUID
    name: str
    code: str
    country: str
    city: str
    address: str
    phone: str
    email: Optional[str] = None
    working_hours: str
    status: str
    commission_rate: float
    max_transaction_cents: int
    min_transaction_cents: int
    supported_currencies: List[str]
    rating: float
    total_transactions: int
    contact_link: Optional[str] = None


class AgentStatusUpdate(BaseModel):
    status: Literal["active", "inactive", "suspended"]


class AgentLocationCreate(BaseModel):
    name: str
    address: str
    city: str
    phone: Optional[str] = None
    working_hours: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class AgentLocationResponse(ORMModel):
    id: UUID
    agent_id: UUID
    name: str
    address: str
    city: str
    phone: Optional[str] = None
    working_hours: str
    status: str


class AgentTransactionCreate(BaseModel):
    agent_id: UUID
    agent_location_id: Optional[UUID] = None
    transaction_type: Literal["deposit", "withdrawal"]
    amount_cents: int = Field(..., gt=0)
    notes: Optional[str] = None


class AgentTransactionResponse(ORMModel):
    id: UUID
    user_id: str
    agent_id: UUID
    agent_location_id: Optional[UUID] = None
    transaction_type: str
    amount_cents: int
    currency: str
    commission_cents: int
    reference_code: str
    status: str
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


# Documents / statements

class DocumentCreate(BaseModel):
    type: Literal["statement", "certificate", "tax-document"]
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    period: Optional[str] = None


class DocumentStatusUpdate(BaseModel):
    status: Literal["ready", "processing", "expired"]


class DocumentResponse(ORMModel):
    id: UUID
    type: str
    title: str
    description: Optional[str] = None
    period: Optional[str] = None
    file_size: Optional[str] = None
    status: str
    download_url: Optional[str] = None
    created_at: datetime


class StatementLineSchema(BaseModel):
    date: date
    description: str
    amount_cents: int
    balance_cents: int
    reference: str


class StatementResponse(BaseModel):
    account_number: str
    iban: str
    account_holder: str
    period: str
    currency: str
    opening_balance_cents: int
    closing_balance_cents: int
    lines: List[StatementLineSchema]


class TaxSummaryResponse(BaseModel):
    account_number: str
    account_holder: str
    year: str
    currency: str
    total_deposits_cents: int
    total_withdrawals_cents: int
    average_balance_cents: int
    transaction_count: int


class BalanceCertificateResponse(BaseModel):
    account_holder: str
    iban: str
    swift_code: str
    bank_name: str
    balance_cents: int
    currency: str
    issued_on: date


# Notifications

NotificationType = Literal[
    "success", "warning", "info", "transaction",
    "topup_approved", "topup_rejected", "kyc_approved", "kyc_rejected",
]


class NotificationCreate(BaseModel):
    type: NotificationType
    title: str = Field(..., min_length=1)
    message: Optional[str] = None
    description: Optional[str] = None


class NotificationResponse(ORMModel):
    id: UUID
    type: str
    title: str
    message: Optional[str] = None
    description: Optional[str] = None
    read: bool
    created_at: datetime


class UnreadCountResponse(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    updated: int


# Verification / KYC

class PhoneCodeRequest(BaseModel):
    phone: str = Field(..., min_length=6)


class PhoneCodeSent(BaseModel):
    phone: str
    expires_at: datetime


class PhoneVerifyRequest(BaseModel):
    phone: str = Field(..., min_length=6)
    code: str = Field(..., min_length=4, max_length=12)


class KYCSubmitRequest(BaseModel):
    national_id_url: Optional[str] = None
    passport_url: Optional[str] = None
    selfie_url: str = Field(..., min_length=1)


class KYCSubmissionResponse(ORMModel):
    id: UUID
    user_id: str
    national_id_url: Optional[str] = None
    passport_url: Optional[str] = None
    selfie_url: Optional[str] = None
    status: str
    admin_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime


# Admin reviews

class TopUpReview(BaseModel):
    status: Literal["approved", "rejected"]
    rejection_reason: Optional[str] = None


class AgentTransactionReview(BaseModel):
    status: Literal["completed", "cancelled", "failed"]
    rejection_reason: Optional[str] = None


class KYCReview(BaseModel):
    status: Literal["under_review", "approved", "rejected"]
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None
