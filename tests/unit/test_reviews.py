"""Unit tests for back-office reviews"""

import pytest
from unittest.mock import patch
from sqlalchemy.orm import Session
from tradehub.domain.exceptions import BalanceUpdateError, InvalidOperationError, TransactionNotFoundError
from tradehub.domain.reviews import ReviewService
from tradehub.domain.transfers import TransferService
from tradehub.infrastructure.database.models import BankAccount, KYCSubmission, Notification, Transaction, UserProfile
from tradehub.infrastructure.database.repositories import AccountRepository, AgentRepository, TransactionRepository


def _balance(db: Session, account: BankAccount) -> int:
    db.expire_all()
    return db.get(BankAccount, account.id).balance_cents


def test_approve_topup_credits_balance(db: Session, make_customer):
    account = make_customer("alice", balance_cents=1000)
    deposit = TransferService(db).top_up("alice", 5000, "bank-transfer")

    reviewed = ReviewService(db).review_topup(str(deposit.id), "approved", "admin_1")

    assert reviewed.status == "approved"
    assert reviewed.reviewed_by == "admin_1"
    assert _balance(db, account) == 6000
    assert db.query(Notification).filter(Notification.type == "topup_approved").count() == 1


def test_failed_credit_keeps_topup_pending(db: Session, make_customer):
    account = make_customer("alice", balance_cents=1000)
    deposit = TransferService(db).top_up("alice", 5000, "bank-transfer")

    with patch.object(AccountRepository, "update_balance", return_value=False):
        with pytest.raises(BalanceUpdateError):
            ReviewService(db).review_topup(str(deposit.id), "approved", "admin_1")

    assert _balance(db, account) == 1000
    assert db.get(Transaction, deposit.id).status == "pending"
    assert db.query(Notification).filter(Notification.type == "topup_approved").count() == 0


def test_reject_topup_leaves_balance(db: Session, make_customer):
    account = make_customer("alice", balance_cents=1000)
    deposit = TransferService(db).top_up("alice", 5000, "bank-transfer")

    ReviewService(db).review_topup(str(deposit.id), "rejected", "admin_1", rejection_reason="Receipt unreadable")

    assert _balance(db, account) == 1000
    note = db.query(Notification).filter(Notification.type == "topup_rejected").one()
    assert "Receipt unreadable" in note.message


def test_topup_reviewed_only_once(db: Session, make_customer):
    make_customer("alice")
    deposit = TransferService(db).top_up("alice", 5000, "bank-transfer")
    service = ReviewService(db)
    service.review_topup(str(deposit.id), "approved", "admin_1")

    with pytest.raises(InvalidOperationError):
        service.review_topup(str(deposit.id), "approved", "admin_1")
    with pytest.raises(TransactionNotFoundError):
        service.review_topup("not-a-uuid", "approved", "admin_1")


def test_agent_topup_settled_through_agent_transaction(db: Session, make_customer, make_agent):
    account = make_customer("alice", balance_cents=0)
    agent = make_agent()
    deposit = TransferService(db).top_up("alice", 4000, "agents", agent_id=str(agent.id))
    service = ReviewService(db)

    with pytest.raises(InvalidOperationError):
        service.review_topup(str(deposit.id), "approved", "admin_1")

    agent_txn = AgentRepository(db).list_transactions_by_user("alice")[0]
    service.update_agent_transaction(str(agent_txn.id), "completed", "admin_1")

    assert _balance(db, account) == 4000
    db.refresh(deposit)
    assert deposit.status == "completed"
    db.refresh(agent)
    assert agent.total_transactions == 1


def test_agent_withdrawal_completion_debits(db: Session, make_customer, make_agent):
    account = make_customer("alice", balance_cents=10000)
    agent = make_agent()
    result = TransferService(db).withdraw("alice", 3000, "agents", agent_id=str(agent.id))

    agent_txn = ReviewService(db).update_agent_transaction(result.agent_transaction_id, "completed", "admin_1")

    assert agent_txn.status == "completed"
    assert agent_txn.completed_at is not None
    assert _balance(db, account) == 7000


def test_agent_withdrawal_completion_refused_when_balance_spent(db: Session, make_customer, make_agent):
    account = make_customer("alice", balance_cents=3000)
    agent = make_agent()
    result = TransferService(db).withdraw("alice", 3000, "agents", agent_id=str(agent.id))
    account.balance_cents = 1000
    db.commit()

    with pytest.raises(BalanceUpdateError):
        ReviewService(db).update_agent_transaction(result.agent_transaction_id, "completed", "admin_1")

    assert _balance(db, account) == 1000


def test_cancelled_agent_transaction_fails_linked_lines(db: Session, make_customer, make_agent):
    make_customer("alice", balance_cents=10000)
    agent = make_agent()
    result = TransferService(db).withdraw("alice", 3000, "agents", agent_id=str(agent.id))

    ReviewService(db).update_agent_transaction(
        result.agent_transaction_id, "cancelled", "admin_1", rejection_reason="No show"
    )

    withdrawal = TransactionRepository(db).get(result.transaction_id)
    assert withdrawal.status == "failed"
    assert withdrawal.rejection_reason == "No show"


def test_kyc_review_updates_profile(db: Session, make_customer):
    make_customer("alice")
    submission = KYCSubmission(user_id="alice", passport_url="p.jpg", selfie_url="s.jpg", status="pending")
    db.add(submission)
    db.commit()

    ReviewService(db).review_kyc(str(submission.id), "approved", "admin_1", admin_notes="Clear photos")

    profile = db.query(UserProfile).filter(UserProfile.user_id == "alice").one()
    assert profile.kyc_status == "approved"
    assert submission.admin_notes == "Clear photos"
    assert db.query(Notification).filter(Notification.type == "kyc_approved").count() == 1
