"""Back-office reviews: top-ups, agent transactions and KYC submissions"""

import logging

from sqlalchemy.orm import Session

from tradehub.domain.exceptions import (
    AccountNotFoundError,
    AgentNotFoundError,
    BalanceUpdateError,
    InvalidOperationError,
    SubmissionNotFoundError,
    TransactionNotFoundError,
)
from tradehub.infrastructure.database.models import AgentTransaction, KYCSubmission, Transaction
from tradehub.infrastructure.database.repositories import (
    AccountRepository,
    AgentRepository,
    KYCRepository,
    NotificationRepository,
    ProfileRepository,
    TransactionRepository,
)
from tradehub.utils.date_utils import utcnow
from tradehub.utils.money import format_amount

logger = logging.getLogger(__name__)

TOPUP_DECISIONS = ("approved", "rejected")
AGENT_DECISIONS = ("completed", "cancelled", "failed")
KYC_DECISIONS = ("under_review", "approved", "rejected")


class ReviewService:
    """Admin decisions that move money or unlock features"""

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)
        self.transactions = TransactionRepository(db)
        self.agents = AgentRepository(db)
        self.notifications = NotificationRepository(db)
        self.profiles = ProfileRepository(db)
        self.kyc = KYCRepository(db)

    def review_topup(
        self, transaction_id: str, status: str, reviewer: str, rejection_reason: str | None = None
    ) -> Transaction:
        """
        Approve or reject a pending deposit.

        Approval credits the depositor's balance. Agent top-ups are reconciled
        through their agent transaction instead.
        """
        if status not in TOPUP_DECISIONS:
            raise InvalidOperationError(f"Invalid top-up status: {status}")

        deposit = self.transactions.get(transaction_id)
        if deposit is None or deposit.type != "deposit":
            raise TransactionNotFoundError("Top-up not found")
        if deposit.status != "pending":
            raise InvalidOperationError(f"Top-up already {deposit.status}")
        if deposit.method == "agents":
            raise InvalidOperationError("Agent top-ups are reconciled through the agent transaction")

        self.transactions.set_status(
            deposit,
            status,
            reviewed_by=reviewer,
            reviewed_at=utcnow(),
            rejection_reason=rejection_reason if status == "rejected" else None,
        )

        amount = f"{format_amount(deposit.amount_cents)} {deposit.currency}"
        if status == "approved":
            account = self.accounts.get_by_user(deposit.user_id)
            if account is None:
                self.db.rollback()
                raise AccountNotFoundError("Depositor has no bank account")
            if not self.accounts.update_balance(account, deposit.amount_cents, "credit"):
                self.db.rollback()
                raise BalanceUpdateError("Could not credit the top-up to the balance")
            self.notifications.create(
                deposit.user_id,
                type="topup_approved",
                title="Top-up approved",
                message=f"Your top-up of {amount} was approved and added to your balance.",
            )
        else:
            reason = f" Reason: {rejection_reason}" if rejection_reason else ""
            self.notifications.create(
                deposit.user_id,
                type="topup_rejected",
                title="Top-up rejected",
                message=f"Your top-up of {amount} was rejected.{reason}",
            )

        self.db.commit()
        logger.info(
            "Top-up reviewed",
            extra={"transaction_id": str(deposit.id), "status": status, "reviewed_by": reviewer},
        )
        return deposit

    def update_agent_transaction(
        self, transaction_id: str, status: str, reviewer: str, rejection_reason: str | None = None
    ) -> AgentTransaction:
        """
        Settle a pending agent transaction.

        Completion credits (deposit) or debits (withdrawal) the user's balance
        and settles the matching history line; a debit that would go negative
        is refused.
        """
        if status not in AGENT_DECISIONS:
            raise InvalidOperationError(f"Invalid agent transaction status: {status}")

        agent_txn = self.agents.get_transaction(transaction_id)
        if agent_txn is None:
            raise AgentNotFoundError("Agent transaction not found")
        if agent_txn.status != "pending":
            raise InvalidOperationError(f"Agent transaction already {agent_txn.status}")

        linked = [
            t for t in self.transactions.list_by_reference(agent_txn.reference_code)
            if t.user_id == agent_txn.user_id
        ]
        amount = f"{format_amount(agent_txn.amount_cents)} {agent_txn.currency}"

        if status == "completed":
            account = self.accounts.get_by_user(agent_txn.user_id)
            if account is None:
                raise AccountNotFoundError("User has no bank account")
            kind = "credit" if agent_txn.transaction_type == "deposit" else "debit"
            if not self.accounts.update_balance(account, agent_txn.amount_cents, kind):
                self.db.rollback()
                raise BalanceUpdateError("Insufficient balance to complete withdrawal")

            agent = self.agents.get(agent_txn.agent_id)
            if agent is not None:
                agent.total_transactions = (agent.total_transactions or 0) + 1

            for line in linked:
                self.transactions.set_status(line, "completed", reviewed_by=reviewer, reviewed_at=utcnow())
            self.notifications.create(
                agent_txn.user_id,
                type="success",
                title="Agent transaction approved",
                message=f"Your transaction of {amount} ({agent_txn.reference_code}) was approved",
            )
        else:
            for line in linked:
                self.transactions.set_status(
                    line, "failed", reviewed_by=reviewer, reviewed_at=utcnow(), rejection_reason=rejection_reason
                )
            reason = f" Reason: {rejection_reason}" if rejection_reason else ""
            self.notifications.create(
                agent_txn.user_id,
                type="warning",
                title="Agent transaction cancelled",
                message=f"Your transaction of {amount} ({agent_txn.reference_code}) was cancelled.{reason}",
            )

        self.agents.update_transaction_status(agent_txn, status, reviewed_by=reviewer, rejection_reason=rejection_reason)
        self.db.commit()
        return agent_txn

    def review_kyc(
        self,
        submission_id: str,
        status: str,
        reviewer: str,
        rejection_reason: str | None = None,
        admin_notes: str | None = None,
    ) -> KYCSubmission:
        """Record a KYC decision and mirror it on the profile"""
        if status not in KYC_DECISIONS:
            raise InvalidOperationError(f"Invalid KYC status: {status}")

        submission = self.kyc.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError("KYC submission not found")

        self.kyc.review(submission, status, reviewer, rejection_reason=rejection_reason, admin_notes=admin_notes)

        profile = self.profiles.get_by_user(submission.user_id)
        if profile is not None and status in ("approved", "rejected"):
            profile.kyc_status = status

        if status == "approved":
            self.notifications.create(
                submission.user_id,
                type="kyc_approved",
                title="Identity verified",
                message="Your identity documents were approved.",
            )
        elif status == "rejected":
            reason = f" Reason: {rejection_reason}" if rejection_reason else ""
            self.notifications.create(
                submission.user_id,
                type="kyc_rejected",
                title="Identity verification rejected",
                message=f"Your identity documents were rejected.{reason}",
            )

        self.db.commit()
        return submission
