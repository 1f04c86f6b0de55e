"""Unit tests for repository behavior that carries business rules"""

import pytest
from datetime import timedelta
from sqlalchemy.orm import Session
from tradehub.infrastructure.database.models import BankAccount, VerificationCode
from tradehub.infrastructure.database.repositories import (
    AccountRepository,
    AgentRepository,
    NotificationRepository,
    RecipientRepository,
    TransactionRepository,
    VerificationCodeRepository,
)
from tradehub.utils.date_utils import as_utc, utcnow


@pytest.mark.parametrize("balance, amount", [(0, 1), (5000, 5001), (100, 10_000)])
def test_update_balance_never_goes_negative(db: Session, make_customer, balance, amount):
    account = make_customer("alice", balance_cents=balance)
    repo = AccountRepository(db)

    assert repo.update_balance(account, amount, "debit") is False
    db.commit()

    db.expire_all()
    assert db.get(BankAccount, account.id).balance_cents == balance


def test_update_balance_credit_and_debit(db: Session, make_customer):
    account = make_customer("alice", balance_cents=1000)
    repo = AccountRepository(db)

    assert repo.update_balance(account, 500, "credit") is True
    assert repo.update_balance(account, 1500, "debit") is True
    assert account.balance_cents == 0


def test_update_recipient_balance_unknown_iban(db: Session):
    assert AccountRepository(db).update_recipient_balance("ES00NOPE", 100) is False


def test_new_account_defaults(db: Session):
    account = AccountRepository(db).create_for_user("carol")
    assert account.status == "Pending"
    assert account.balance_cents == 0
    assert account.iban.startswith("ES912100041845")
    assert account.iban.endswith(account.account_number)


def test_transaction_status_defaults(db: Session):
    repo = TransactionRepository(db)
    deposit = repo.create("alice", {"type": "deposit", "amount_cents": 100, "currency": "USD"})
    sent = repo.create("alice", {"type": "sent", "amount_cents": -100, "recipient": ""})

    assert deposit.status == "pending"
    assert deposit.currency == "EUR"
    assert sent.status == "completed"
    assert sent.recipient is None


def test_recipients_ordered_by_last_used(db: Session):
    repo = RecipientRepository(db)
    older = repo.create("alice", {"name": "Older"})
    newer = repo.create("alice", {"name": "Newer"})
    older.last_used = utcnow() - timedelta(days=3)
    db.flush()

    assert [r.name for r in repo.list_by_user("alice")] == ["Newer", "Older"]
    repo.touch_last_used(older)
    assert [r.name for r in repo.list_by_user("alice")][0] == "Older"
    assert repo.get("bob", newer.id) is None


def test_agent_transaction_commission_default(db: Session, make_agent):
    agent = make_agent()
    txn = AgentRepository(db).create_transaction(
        "alice", {"agent_id": agent.id, "transaction_type": "deposit", "amount_cents": 10_000}
    )

    assert txn.commission_cents == 250
    assert txn.reference_code.startswith("AG")
    assert txn.status == "pending"


def test_notifications_unread_and_mark_all(db: Session):
    repo = NotificationRepository(db)
    first = repo.create("alice", type="info", title="One")
    repo.create("alice", type="info", title="Two")
    repo.create("bob", type="info", title="Other user")

    repo.mark_as_read(first)
    assert repo.unread_count("alice") == 1
    assert repo.mark_all_as_read("alice") == 1
    assert repo.unread_count("alice") == 0
    assert repo.unread_count("bob") == 1


def test_verification_code_expiry_and_use(db: Session):
    repo = VerificationCodeRepository(db)
    record = repo.create("alice", "+212600000000", "123456")

    assert as_utc(record.expires_at) > utcnow() + timedelta(minutes=9)
    assert repo.find_unused("alice", "+212600000000", "123456") is record
    assert repo.find_unused("alice", "+33600000000", "123456") is None

    repo.mark_used(record)
    assert repo.find_unused("alice", "+212600000000", "123456") is None
    assert db.query(VerificationCode).one().used_at is not None
