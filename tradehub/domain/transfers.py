"""Money movement flows: transfer, withdrawal and top-up requests

Each flow is a sequence of independent writes. The sender side of a transfer
is committed before the recipient side is attempted, so a failure while
crediting the recipient leaves the sender debited with its `sent` record in
place and no compensation. That failure is logged and counted rather than
raised, and reported back as `recipient_credited=False`.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from tradehub.config import settings
from tradehub.domain.contact import agent_withdrawal_message, build_whatsapp_link
from tradehub.domain.exceptions import (
    AccountNotFoundError,
    AgentNotFoundError,
    BalanceUpdateError,
    InsufficientFundsError,
    InvalidOperationError,
    RecipientNotFoundError,
)
from tradehub.domain.models import TransferResult, WithdrawalResult
from tradehub.domain.references import (
    TOPUP_PREFIX,
    TRANSFER_PREFIX,
    WITHDRAWAL_PREFIX,
    generate_operation_reference,
)
from tradehub.infrastructure.database.models import BankAccount, Transaction, UserProfile
from tradehub.infrastructure.database.repositories import (
    AccountRepository,
    AgentRepository,
    NotificationRepository,
    ProfileRepository,
    RecipientRepository,
    TransactionRepository,
)
from tradehub.infrastructure.observability.metrics import partial_transfer_counter
from tradehub.utils.money import format_amount

logger = logging.getLogger(__name__)

WITHDRAWAL_METHODS = ("western-union", "agents")
TOPUP_METHODS = {
    "western-union": ("Western Union Top-up", "Western Union"),
    "bank-transfer": ("Bank Transfer Top-up", "Bank Transfer"),
    "agents": ("Agent Network Top-up", "Agents Network"),
}


class TransferService:
    """Runs money flows for one request against a single session"""

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)
        self.transactions = TransactionRepository(db)
        self.recipients = RecipientRepository(db)
        self.notifications = NotificationRepository(db)
        self.profiles = ProfileRepository(db)
        self.agents = AgentRepository(db)

    # -- helpers -------------------------------------------------------------

    def _funded_account(self, user_id: str, amount_cents: int) -> BankAccount:
        """Load the user's account and check the loaded balance covers amount"""
        account = self.accounts.get_by_user(user_id)
        if account is None:
            raise AccountNotFoundError("No bank account found")
        if account.balance_cents < amount_cents:
            raise InsufficientFundsError("Insufficient balance")
        return account

    @staticmethod
    def _sender_name(profile: Optional[UserProfile]) -> str:
        if profile is None:
            return "Unknown Sender"
        return profile.full_name or profile.email or "Unknown Sender"

    # -- transfer ------------------------------------------------------------

    def send(
        self,
        user_id: str,
        amount_cents: int,
        recipient_id: str | None = None,
        new_recipient: Optional[Dict[str, Any]] = None,
        save_recipient: bool = False,
        purpose: str | None = None,
    ) -> TransferResult:
        """
        Transfer money to a saved or new recipient.

        Flow:
        1. Validate the request (amount, recipient selected)
        2. Check the loaded sender balance covers the amount (no write otherwise)
        3. Debit the sender
        4. Record the `sent` transaction and notify the sender, then commit
        5. Credit the recipient account found by IBAN, using its current row
        6. Record the `received` transaction and notify the recipient, then commit

        Raises:
            InvalidOperationError: Missing recipient or self-transfer
            AccountNotFoundError: Sender has no account
            InsufficientFundsError: Loaded balance below amount
            RecipientNotFoundError: Saved recipient does not exist
            BalanceUpdateError: Debit was rejected
        """
        if amount_cents <= 0:
            raise InvalidOperationError("Amount must be positive")
        if recipient_id is None and not (new_recipient and new_recipient.get("name")):
            raise InvalidOperationError("A recipient must be selected")

        account = self._funded_account(user_id, amount_cents)

        saved = None
        if recipient_id is not None:
            saved = self.recipients.get(user_id, recipient_id)
            if saved is None:
                raise RecipientNotFoundError("Recipient not found")
            recipient_name, location, recipient_iban = saved.name, saved.country, saved.iban
        else:
            recipient_name = new_recipient["name"]
            location = new_recipient.get("country")
            recipient_iban = new_recipient.get("iban")

        if recipient_iban and recipient_iban == account.iban:
            raise InvalidOperationError("Cannot transfer to your own account")

        if saved is None and save_recipient:
            saved = self.save_recipient(user_id, new_recipient)

        reference = generate_operation_reference(TRANSFER_PREFIX)
        currency = account.currency

        # Sender leg
        if not self.accounts.update_balance(account, amount_cents, "debit"):
            self.db.rollback()
            raise BalanceUpdateError("Failed to update balance")

        sent = self.transactions.create(
            user_id,
            {
                "type": "sent",
                "amount_cents": -amount_cents,
                "recipient": recipient_name,
                "location": location,
                "category": "Transfer",
                "description": purpose or "Money transfer",
                "reference": reference,
            },
        )
        self.notifications.create(
            user_id,
            type="transaction",
            title="Money sent",
            message=f"You sent {format_amount(amount_cents)} {currency}",
            description=f"To {recipient_name} - {reference}",
        )
        self.db.commit()

        result = TransferResult(
            reference=reference,
            amount_cents=amount_cents,
            new_balance_cents=account.balance_cents,
            sender_transaction_id=str(sent.id),
        )

        # Recipient leg
        if recipient_iban:
            try:
                received = self._credit_recipient(user_id, recipient_iban, amount_cents, currency, reference)
                if received is not None:
                    result.recipient_credited = True
                    result.recipient_transaction_id = str(received.id)
            except Exception as e:
                self.db.rollback()
                partial_transfer_counter.inc()
                logger.error(
                    f"Recipient credit failed after sender debit: {e}",
                    extra={"user_id": user_id, "reference": reference},
                )

        if saved is not None:
            self.recipients.touch_last_used(saved)
            self.db.commit()

        return result

    def save_recipient(self, user_id: str, data: Dict[str, Any]):
        """Return the saved recipient with the same name (case-insensitive) or create one"""
        existing = self.recipients.find_by_name(user_id, data["name"])
        if existing is not None:
            return existing

        avatar_url = None
        if data.get("email"):
            match = self.profiles.find_by_email(data["email"])
            avatar_url = match.profile_image_url if match else None

        recipient = self.recipients.create(user_id, data, avatar_url=avatar_url)
        self.notifications.create(
            user_id,
            type="success",
            title="Contact saved",
            message=f"{recipient.name} was added to your recipients",
        )
        self.db.commit()
        return recipient

    def _credit_recipient(
        self, sender_id: str, iban: str, amount_cents: int, currency: str, reference: str
    ) -> Optional[Transaction]:
        if not self.accounts.update_recipient_balance(iban, amount_cents):
            logger.warning(
                "Recipient balance update failed - account may not exist in system",
                extra={"reference": reference},
            )
            self.db.rollback()
            return None

        recipient_user_id = self.accounts.get_user_id_by_iban(iban)
        if recipient_user_id is None:
            self.db.commit()
            return None

        sender_profile = self.profiles.get_by_user(sender_id)
        sender_name = self._sender_name(sender_profile)
        received = self.transactions.create_for_recipient(
            recipient_user_id,
            {
                "amount_cents": amount_cents,
                "currency": currency,
                "sender": sender_name,
                "location": (sender_profile.country if sender_profile else None) or "Unknown",
                "category": "Transfer",
                "description": f"Transfer from {sender_name}",
                "reference": reference,
            },
        )
        self.notifications.create(
            recipient_user_id,
            type="transaction",
            title="Money Received",
            message=f"You received {format_amount(amount_cents)} {currency} from {sender_name}",
            description=f"Reference: {reference}",
        )
        self.db.commit()
        return received

    # -- withdrawal ----------------------------------------------------------

    def withdraw(
        self,
        user_id: str,
        amount_cents: int,
        method: str,
        agent_id: str | None = None,
        recipient_name: str | None = None,
        pickup_location: str | None = None,
        notes: str | None = None,
    ) -> WithdrawalResult:
        """
        Submit a cash withdrawal request.

        The balance is checked but not debited here; an agent withdrawal is
        debited when an admin completes its agent transaction.
        """
        if amount_cents <= 0:
            raise InvalidOperationError("Amount must be positive")
        if method not in WITHDRAWAL_METHODS:
            raise InvalidOperationError(f"Unsupported withdrawal method: {method}")

        account = self._funded_account(user_id, amount_cents)

        agent = None
        if method == "agents":
            agent = self.agents.get(agent_id) if agent_id else None
            if agent is None or agent.status != "active":
                raise AgentNotFoundError("Agent not found")

        profile = self.profiles.get_by_user(user_id)
        reference = generate_operation_reference(WITHDRAWAL_PREFIX)
        label = "Western Union" if method == "western-union" else "Agents Network"

        txn = self.transactions.create(
            user_id,
            {
                "type": "withdrawal",
                "amount_cents": -amount_cents,
                "recipient": agent.name if agent else (recipient_name or "Cash Withdrawal"),
                "location": pickup_location or (profile.country if profile else None) or "Unknown",
                "category": "Withdrawal",
                "description": f"{label} withdrawal",
                "reference": reference,
                "method": method,
            },
            status="pending",
        )

        result = WithdrawalResult(reference=reference, amount_cents=amount_cents, transaction_id=str(txn.id))

        if agent is not None:
            agent_txn = self.agents.create_transaction(
                user_id,
                {
                    "agent_id": agent.id,
                    "transaction_type": "withdrawal",
                    "amount_cents": amount_cents,
                    "currency": account.currency,
                    "notes": notes,
                },
                reference_code=reference,
                commission_cents=0,
            )
            result.agent_transaction_id = str(agent_txn.id)
            result.contact_link = build_whatsapp_link(
                agent.phone, agent_withdrawal_message(agent.name, amount_cents, account.currency, reference)
            )
        else:
            result.contact_link = build_whatsapp_link(
                settings.support_whatsapp_number, f"Western Union withdrawal {reference}"
            )

        self.notifications.create(
            user_id,
            type="info",
            title="Withdrawal request submitted",
            message=f"Your withdrawal request of {format_amount(amount_cents)} {account.currency} was submitted",
            description="Pending review",
        )
        self.db.commit()
        return result

    # -- top-up --------------------------------------------------------------

    def top_up(
        self,
        user_id: str,
        amount_cents: int,
        method: str,
        mtcn: str | None = None,
        sender_name: str | None = None,
        receipt_url: str | None = None,
        agent_id: str | None = None,
    ) -> Transaction:
        """Record a pending deposit awaiting admin review"""
        if amount_cents <= 0:
            raise InvalidOperationError("Enter a valid amount")
        if method not in TOPUP_METHODS:
            raise InvalidOperationError(f"Unsupported top-up method: {method}")
        if method == "western-union" and not mtcn:
            raise InvalidOperationError("MTCN is required for Western Union top-ups")

        account = self.accounts.get_by_user(user_id)
        if account is None:
            raise AccountNotFoundError("No bank account found")

        agent = None
        if method == "agents":
            agent = self.agents.get(agent_id) if agent_id else None
            if agent is None:
                raise AgentNotFoundError("Agent not found")

        description, recipient = TOPUP_METHODS[method]
        if agent is not None:
            description = f"{description} via {agent.name}"
            recipient = agent.name

        profile = self.profiles.get_by_user(user_id)
        reference = generate_operation_reference(TOPUP_PREFIX)
        deposit = self.transactions.create(
            user_id,
            {
                "type": "deposit",
                "amount_cents": amount_cents,
                "recipient": recipient,
                "sender": sender_name,
                "location": profile.country if profile else None,
                "category": "Deposit",
                "description": description,
                "reference": reference,
                "method": method,
                "mtcn": mtcn,
                "receipt_url": receipt_url,
            },
        )

        if agent is not None:
            self.agents.create_transaction(
                user_id,
                {
                    "agent_id": agent.id,
                    "transaction_type": "deposit",
                    "amount_cents": amount_cents,
                    "currency": account.currency,
                },
                reference_code=reference,
            )

        self.notifications.create(
            user_id,
            type="info",
            title="Top-up request submitted",
            message=f"Your top-up request of {format_amount(amount_cents)} {account.currency} was submitted",
            description="Pending review",
        )
        self.db.commit()
        return deposit
