"""Data access layer for TradeHub entities

Repositories flush but never commit; the caller owns the unit of work.
"""

import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tradehub.config import settings
from tradehub.domain.references import (
    AGENT_PREFIX,
    build_iban,
    generate_account_number,
    generate_operation_reference,
)
from tradehub.domain.models import GeneratedCard
from tradehub.infrastructure.database.models import (
    Agent,
    AgentLocation,
    AgentTransaction,
    BankAccount,
    Document,
    KYCSubmission,
    Notification,
    Recipient,
    Transaction,
    UserProfile,
    UserSettings,
    VerificationCode,
    VirtualCard,
)
from tradehub.infrastructure.observability.metrics import balance_rejection_counter
from tradehub.utils.date_utils import utcnow

logger = logging.getLogger(__name__)


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None and empty-string fields"""
    return {k: v for k, v in data.items() if v is not None and v != ""}


def _as_uuid(value: Any) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        return None


class ProfileRepository:
    """Repository for user profiles and settings"""

    def __init__(self, db: Session):
        self.db = db

    def create_profile(self, user_id: str, **fields: Any) -> UserProfile:
        profile = UserProfile(user_id=user_id, **_clean(fields))
        self.db.add(profile)
        self.db.flush()
        return profile

    def get_by_user(self, user_id: str) -> Optional[UserProfile]:
        return self.db.query(UserProfile).filter(UserProfile.user_id == user_id).first()

    def find_by_email(self, email: str) -> Optional[UserProfile]:
        return (
            self.db.query(UserProfile)
            .filter(func.lower(UserProfile.email) == email.strip().lower())
            .first()
        )

    def create_default_settings(self, user_id: str) -> UserSettings:
        user_settings = UserSettings(user_id=user_id)
        self.db.add(user_settings)
        self.db.flush()
        return user_settings

    def get_settings(self, user_id: str) -> Optional[UserSettings]:
        return self.db.query(UserSettings).filter(UserSettings.user_id == user_id).first()

    def update_settings(self, user_settings: UserSettings, changes: Dict[str, Any]) -> UserSettings:
        for key, value in changes.items():
            setattr(user_settings, key, value)
        self.db.flush()
        return user_settings


class AccountRepository:
    """Repository for bank accounts and balance mutation"""

    def __init__(self, db: Session):
        self.db = db

    def create_for_user(self, user_id: str) -> BankAccount:
        """Open a zero-balance account in Pending status"""
        account_number = generate_account_number()
        account = BankAccount(
            user_id=user_id,
            account_number=account_number,
            iban=build_iban(settings.iban_prefix, account_number),
            swift_code=settings.swift_code,
            bank_name=settings.bank_name,
            account_type=settings.account_type,
            balance_cents=0,
            currency=settings.default_currency,
            status="Pending",
        )
        self.db.add(account)
        self.db.flush()
        return account

    def get_by_user(self, user_id: str) -> Optional[BankAccount]:
        return (
            self.db.query(BankAccount)
            .filter(BankAccount.user_id == user_id)
            .order_by(BankAccount.created_at)
            .first()
        )

    def find_by_iban(self, iban: str) -> Optional[BankAccount]:
        return self.db.query(BankAccount).filter(BankAccount.iban == iban).first()

    def get_user_id_by_iban(self, iban: str) -> Optional[str]:
        account = self.find_by_iban(iban)
        return account.user_id if account else None

    def update_balance(self, account: BankAccount, amount_cents: int, kind: str) -> bool:
        """
        Credit or debit an account using its loaded balance.

        Returns False without touching the row when the result would be
        negative or the write fails.
        """
        if kind == "credit":
            new_balance = account.balance_cents + amount_cents
        else:
            new_balance = account.balance_cents - amount_cents

        if new_balance < 0:
            balance_rejection_counter.inc()
            logger.warning(
                "Balance update rejected",
                extra={"account_id": str(account.id), "amount_cents": amount_cents, "kind": kind},
            )
            return False

        try:
            account.balance_cents = new_balance
            self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error updating balance: {e}", extra={"account_id": str(account.id)})
            return False
        return True

    def update_recipient_balance(self, iban: str, amount_cents: int) -> bool:
        """Credit the account holding iban, reading its current row"""
        recipient_account = self.find_by_iban(iban)
        if recipient_account is None:
            logger.warning("Recipient account not found", extra={"iban": iban})
            return False
        self.db.refresh(recipient_account)
        return self.update_balance(recipient_account, amount_cents, "credit")

    def set_status(self, account: BankAccount, status: str) -> BankAccount:
        account.status = status
        self.db.flush()
        return account


class TransactionRepository:
    """Repository for transaction history"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: str, data: Dict[str, Any], status: str | None = None) -> Transaction:
        """
        Record a transaction for user_id.

        Empty fields are dropped; currency is always the bank's currency.
        Deposits start pending, everything else completed, unless status is given.
        """
        fields = _clean(data)
        fields["currency"] = settings.default_currency
        if status is None:
            status = "pending" if fields.get("type") == "deposit" else "completed"
        txn = Transaction(user_id=user_id, status=status, **fields)
        self.db.add(txn)
        self.db.flush()
        return txn

    def create_for_recipient(self, recipient_user_id: str, data: Dict[str, Any]) -> Transaction:
        """Record the credit side of a transfer on the recipient's history"""
        txn = Transaction(user_id=recipient_user_id, type="received", status="completed", **_clean(data))
        self.db.add(txn)
        self.db.flush()
        return txn

    def list_by_user(self, user_id: str, limit: int | None = None) -> List[Transaction]:
        query = (
            self.db.query(Transaction)
            .filter(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def list_deposits(self, status: str | None = None) -> List[Transaction]:
        """Top-up submissions across all users, for review"""
        query = self.db.query(Transaction).filter(Transaction.type == "deposit")
        if status:
            query = query.filter(Transaction.status == status)
        return query.order_by(Transaction.created_at.desc()).all()

    def list_by_reference(self, reference: str) -> List[Transaction]:
        return self.db.query(Transaction).filter(Transaction.reference == reference).all()

    def get(self, transaction_id: Any) -> Optional[Transaction]:
        txn_uuid = _as_uuid(transaction_id)
        if txn_uuid is None:
            return None
        return self.db.get(Transaction, txn_uuid)

    def set_status(self, txn: Transaction, status: str, **review: Any) -> Transaction:
        txn.status = status
        for key, value in _clean(review).items():
            setattr(txn, key, value)
        self.db.flush()
        return txn


class RecipientRepository:
    """Repository for saved recipients"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: str, data: Dict[str, Any], avatar_url: str | None = None) -> Recipient:
        recipient = Recipient(user_id=user_id, avatar_url=avatar_url, last_used=utcnow(), **_clean(data))
        self.db.add(recipient)
        self.db.flush()
        return recipient

    def get(self, user_id: str, recipient_id: Any) -> Optional[Recipient]:
        recipient_uuid = _as_uuid(recipient_id)
        if recipient_uuid is None:
            return None
        return (
            self.db.query(Recipient)
            .filter(Recipient.id == recipient_uuid, Recipient.user_id == user_id)
            .first()
        )

    def find_by_name(self, user_id: str, name: str) -> Optional[Recipient]:
        """Case-insensitive name match among the user's recipients"""
        return (
            self.db.query(Recipient)
            .filter(Recipient.user_id == user_id, func.lower(Recipient.name) == name.strip().lower())
            .first()
        )

    def list_by_user(self, user_id: str) -> List[Recipient]:
        return (
            self.db.query(Recipient)
            .filter(Recipient.user_id == user_id)
            .order_by(Recipient.last_used.desc())
            .all()
        )

    def update(self, recipient: Recipient, changes: Dict[str, Any]) -> Recipient:
        for key, value in changes.items():
            setattr(recipient, key, value)
        self.db.flush()
        return recipient

    def touch_last_used(self, recipient: Recipient) -> Recipient:
        recipient.last_used = utcnow()
        self.db.flush()
        return recipient

    def delete(self, recipient: Recipient) -> None:
        self.db.delete(recipient)
        self.db.flush()


class CardRepository:
    """Repository for virtual cards"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: str, data: Dict[str, Any], credentials: GeneratedCard) -> VirtualCard:
        card = VirtualCard(
            user_id=user_id,
            name=data["name"],
            card_number=credentials.card_number,
            expiry_date=credentials.expiry_date,
            cvv=credentials.cvv,
            balance_cents=data["spending_limit_cents"],
            currency=settings.default_currency,
            status="active",
            card_type=data.get("card_type", "multi-use"),
            spending_limit_cents=data["spending_limit_cents"],
            spent_amount_cents=0,
            card_brand=data.get("card_brand", "visa"),
            card_tier=data.get("card_tier", "classic"),
        )
        self.db.add(card)
        self.db.flush()
        return card

    def get(self, user_id: str, card_id: Any) -> Optional[VirtualCard]:
        card_uuid = _as_uuid(card_id)
        if card_uuid is None:
            return None
        return (
            self.db.query(VirtualCard)
            .filter(VirtualCard.id == card_uuid, VirtualCard.user_id == user_id)
            .first()
        )

    def list_by_user(self, user_id: str) -> List[VirtualCard]:
        return (
            self.db.query(VirtualCard)
            .filter(VirtualCard.user_id == user_id)
            .order_by(VirtualCard.created_at.desc())
            .all()
        )

    def update_status(self, card: VirtualCard, status: str) -> VirtualCard:
        card.status = status
        self.db.flush()
        return card

    def record_spending(self, card: VirtualCard, amount_cents: int) -> VirtualCard:
        card.spent_amount_cents = card.spent_amount_cents + amount_cents
        card.balance_cents = card.balance_cents - amount_cents
        self.db.flush()
        return card

    def delete(self, card: VirtualCard) -> None:
        self.db.delete(card)
        self.db.flush()


class AgentRepository:
    """Repository for agents, their locations and agent transactions"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, data: Dict[str, Any]) -> Agent:
        agent = Agent(**_clean(data))
        self.db.add(agent)
        self.db.flush()
        return agent

    def add_location(self, agent: Agent, data: Dict[str, Any]) -> AgentLocation:
        location = AgentLocation(agent_id=agent.id, **_clean(data))
        self.db.add(location)
        self.db.flush()
        return location

    def get(self, agent_id: Any) -> Optional[Agent]:
        agent_uuid = _as_uuid(agent_id)
        if agent_uuid is None:
            return None
        return self.db.get(Agent, agent_uuid)

    def list_active(self) -> List[Agent]:
        return self.db.query(Agent).filter(Agent.status == "active").all()

    def set_status(self, agent: Agent, status: str) -> Agent:
        agent.status = status
        self.db.flush()
        return agent

    def has_transactions(self, agent: Agent) -> bool:
        return self.db.query(AgentTransaction.id).filter(AgentTransaction.agent_id == agent.id).first() is not None

    def delete(self, agent: Agent) -> None:
        """Remove an agent together with its locations"""
        self.db.delete(agent)
        self.db.flush()

    def locations_for(self, agent_ids: List[uuid.UUID]) -> List[AgentLocation]:
        if not agent_ids:
            return []
        return (
            self.db.query(AgentLocation)
            .filter(AgentLocation.status == "active", AgentLocation.agent_id.in_(agent_ids))
            .all()
        )

    def create_transaction(
        self,
        user_id: str,
        data: Dict[str, Any],
        reference_code: str | None = None,
        commission_cents: int | None = None,
    ) -> AgentTransaction:
        """Record a pending agent transaction; commission defaults to the configured rate"""
        if reference_code is None:
            reference_code = generate_operation_reference(AGENT_PREFIX)
        if commission_cents is None:
            commission_cents = round(data["amount_cents"] * settings.agent_commission_rate)
        fields = _clean(data)
        fields["agent_id"] = _as_uuid(fields["agent_id"])
        if "agent_location_id" in fields:
            fields["agent_location_id"] = _as_uuid(fields["agent_location_id"])
        txn = AgentTransaction(
            user_id=user_id,
            commission_cents=commission_cents,
            reference_code=reference_code,
            status="pending",
            **fields,
        )
        self.db.add(txn)
        self.db.flush()
        return txn

    def get_transaction(self, transaction_id: Any) -> Optional[AgentTransaction]:
        txn_uuid = _as_uuid(transaction_id)
        if txn_uuid is None:
            return None
        return self.db.get(AgentTransaction, txn_uuid)

    def list_transactions_by_user(self, user_id: str) -> List[AgentTransaction]:
        return (
            self.db.query(AgentTransaction)
            .filter(AgentTransaction.user_id == user_id)
            .order_by(AgentTransaction.created_at.desc())
            .all()
        )

    def list_transactions(self, status: str | None = None) -> List[AgentTransaction]:
        query = self.db.query(AgentTransaction)
        if status:
            query = query.filter(AgentTransaction.status == status)
        return query.order_by(AgentTransaction.created_at.desc()).all()

    def update_transaction_status(
        self,
        txn: AgentTransaction,
        status: str,
        reviewed_by: str | None = None,
        rejection_reason: str | None = None,
    ) -> AgentTransaction:
        txn.status = status
        if reviewed_by:
            txn.reviewed_by = reviewed_by
        if rejection_reason:
            txn.rejection_reason = rejection_reason
        if status == "completed":
            txn.completed_at = utcnow()
        self.db.flush()
        return txn


class DocumentRepository:
    """Repository for requested documents"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: str, data: Dict[str, Any]) -> Document:
        document = Document(user_id=user_id, status="processing", **_clean(data))
        self.db.add(document)
        self.db.flush()
        return document

    def get(self, document_id: Any, user_id: str | None = None) -> Optional[Document]:
        doc_uuid = _as_uuid(document_id)
        if doc_uuid is None:
            return None
        query = self.db.query(Document).filter(Document.id == doc_uuid)
        if user_id is not None:
            query = query.filter(Document.user_id == user_id)
        return query.first()

    def list_by_user(self, user_id: str, doc_type: str | None = None) -> List[Document]:
        query = self.db.query(Document).filter(Document.user_id == user_id)
        if doc_type:
            query = query.filter(Document.type == doc_type)
        return query.order_by(Document.created_at.desc()).all()

    def update_status(self, document: Document, status: str) -> Document:
        document.status = status
        self.db.flush()
        return document

    def mark_ready(self, document: Document, file_size: str) -> Document:
        document.status = "ready"
        document.file_size = file_size
        self.db.flush()
        return document

    def delete(self, document: Document) -> None:
        self.db.delete(document)
        self.db.flush()


class NotificationRepository:
    """Repository for in-app notifications"""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str | None = None,
        description: str | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            description=description,
            read=False,
        )
        self.db.add(notification)
        self.db.flush()
        return notification

    def get(self, user_id: str, notification_id: Any) -> Optional[Notification]:
        notification_uuid = _as_uuid(notification_id)
        if notification_uuid is None:
            return None
        return (
            self.db.query(Notification)
            .filter(Notification.id == notification_uuid, Notification.user_id == user_id)
            .first()
        )

    def list_by_user(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        return query.order_by(Notification.created_at.desc()).all()

    def mark_as_read(self, notification: Notification) -> Notification:
        notification.read = True
        self.db.flush()
        return notification

    def mark_all_as_read(self, user_id: str) -> int:
        """Flag every unread notification of the user; returns how many changed"""
        unread = self.list_by_user(user_id, unread_only=True)
        for notification in unread:
            notification.read = True
        self.db.flush()
        return len(unread)

    def unread_count(self, user_id: str) -> int:
        return (
            self.db.query(func.count(Notification.id))
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .scalar()
        )


class VerificationCodeRepository:
    """Repository for phone verification codes"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: str, phone: str, code: str) -> VerificationCode:
        record = VerificationCode(
            user_id=user_id,
            phone=phone,
            code=code,
            type="phone_verification",
            used=False,
            expires_at=utcnow() + timedelta(minutes=settings.verification_code_ttl_minutes),
        )
        self.db.add(record)
        self.db.flush()
        return record

    def find_unused(self, user_id: str, phone: str, code: str) -> Optional[VerificationCode]:
        """Latest unused code issued to this user for this phone"""
        return (
            self.db.query(VerificationCode)
            .filter(
                VerificationCode.user_id == user_id,
                VerificationCode.phone == phone,
                VerificationCode.code == code,
                VerificationCode.used.is_(False),
            )
            .order_by(VerificationCode.created_at.desc())
            .first()
        )

    def mark_used(self, record: VerificationCode) -> VerificationCode:
        record.used = True
        record.used_at = utcnow()
        self.db.flush()
        return record


class KYCRepository:
    """Repository for KYC submissions"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: str, national_id_url: str | None, passport_url: str | None,
               selfie_url: str | None) -> KYCSubmission:
        submission = KYCSubmission(
            user_id=user_id,
            national_id_url=national_id_url,
            passport_url=passport_url,
            selfie_url=selfie_url,
            status="pending",
        )
        self.db.add(submission)
        self.db.flush()
        return submission

    def latest_for_user(self, user_id: str) -> Optional[KYCSubmission]:
        return (
            self.db.query(KYCSubmission)
            .filter(KYCSubmission.user_id == user_id)
            .order_by(KYCSubmission.created_at.desc())
            .first()
        )

    def get(self, submission_id: Any) -> Optional[KYCSubmission]:
        submission_uuid = _as_uuid(submission_id)
        if submission_uuid is None:
            return None
        return self.db.get(KYCSubmission, submission_uuid)

    def list_by_status(self, status: str | None = None) -> List[KYCSubmission]:
        query = self.db.query(KYCSubmission)
        if status:
            query = query.filter(KYCSubmission.status == status)
        return query.order_by(KYCSubmission.created_at.desc()).all()

    def review(self, submission: KYCSubmission, status: str, reviewer: str,
               rejection_reason: str | None = None, admin_notes: str | None = None) -> KYCSubmission:
        submission.status = status
        submission.reviewed_by = reviewer
        submission.reviewed_at = utcnow()
        if rejection_reason:
            submission.rejection_reason = rejection_reason
        if admin_notes:
            submission.admin_notes = admin_notes
        self.db.flush()
        return submission
