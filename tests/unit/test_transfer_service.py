"""Unit tests for the transfer, withdrawal and top-up flows"""

import pytest
from unittest.mock import patch
from sqlalchemy.orm import Session
from tradehub.domain.exceptions import (
    AgentNotFoundError,
    InsufficientFundsError,
    InvalidOperationError,
    RecipientNotFoundError,
)
from tradehub.domain.transfers import TransferService
from tradehub.infrastructure.database.models import AgentTransaction, Notification, Recipient, Transaction
from tradehub.infrastructure.database.repositories import AccountRepository


def _transactions(db: Session, user_id: str, type_: str):
    return db.query(Transaction).filter(Transaction.user_id == user_id, Transaction.type == type_).all()


def test_insufficient_balance_rejected_without_writes(db: Session, make_customer):
    """Amount above the loaded balance is refused before any debit"""
    make_customer("alice", balance_cents=5000)
    bob = make_customer("bob")

    with patch.object(AccountRepository, "update_balance") as mock_update:
        with pytest.raises(InsufficientFundsError):
            TransferService(db).send("alice", 5001, new_recipient={"name": "Bob", "iban": bob.iban})
        mock_update.assert_not_called()

    assert db.query(Transaction).count() == 0
    assert db.query(Notification).count() == 0


def test_same_bank_transfer_records_both_legs(db: Session, make_customer):
    alice = make_customer("alice", balance_cents=10000, first_name="Alice", last_name="Smith")
    bob = make_customer("bob", balance_cents=200)

    result = TransferService(db).send(
        "alice", 2500, new_recipient={"name": "Bob", "iban": bob.iban}, purpose="Invoice 42"
    )

    assert result.recipient_credited is True
    assert result.new_balance_cents == 7500

    sent = _transactions(db, "alice", "sent")
    received = _transactions(db, "bob", "received")
    assert len(sent) == 1
    assert len(received) == 1
    assert sent[0].reference == received[0].reference == result.reference
    assert sent[0].amount_cents == -2500
    assert sent[0].description == "Invoice 42"
    assert received[0].amount_cents == 2500
    assert received[0].sender == "Alice Smith"
    assert received[0].description == "Transfer from Alice Smith"
    assert received[0].location == "Morocco"

    db.expire_all()
    assert db.get(type(alice), alice.id).balance_cents == 7500
    assert db.get(type(bob), bob.id).balance_cents == 2700

    received_note = db.query(Notification).filter(Notification.user_id == "bob").one()
    assert received_note.title == "Money Received"
    assert received_note.description == f"Reference: {result.reference}"


def test_recipient_credit_failure_keeps_sender_debit(db: Session, make_customer):
    """The sender leg is committed before the recipient leg is attempted"""
    alice = make_customer("alice", balance_cents=10000)
    bob = make_customer("bob", balance_cents=0)

    with patch.object(AccountRepository, "update_recipient_balance", side_effect=RuntimeError("db down")):
        result = TransferService(db).send("alice", 4000, new_recipient={"name": "Bob", "iban": bob.iban})

    assert result.recipient_credited is False
    db.expire_all()
    assert db.get(type(alice), alice.id).balance_cents == 6000
    assert len(_transactions(db, "alice", "sent")) == 1
    assert _transactions(db, "bob", "received") == []
    assert db.get(type(bob), bob.id).balance_cents == 0


def test_transfer_to_external_iban_only_debits_sender(db: Session, make_customer):
    make_customer("alice", balance_cents=10000)

    result = TransferService(db).send(
        "alice", 1000, new_recipient={"name": "Outside", "iban": "DE89370400440532013000"}
    )

    assert result.recipient_credited is False
    assert len(_transactions(db, "alice", "sent")) == 1
    assert db.query(Transaction).filter(Transaction.type == "received").count() == 0


def test_save_new_recipient_and_touch(db: Session, make_customer):
    make_customer("alice", balance_cents=10000)
    bob = make_customer("bob")

    TransferService(db).send(
        "alice", 100, new_recipient={"name": "Bob", "iban": bob.iban, "country": "Morocco"}, save_recipient=True
    )
    TransferService(db).send(
        "alice", 100, new_recipient={"name": "bob", "iban": bob.iban}, save_recipient=True
    )

    saved = db.query(Recipient).filter(Recipient.user_id == "alice").all()
    assert len(saved) == 1
    assert saved[0].country == "Morocco"


def test_transfer_to_saved_recipient(db: Session, make_customer):
    make_customer("alice", balance_cents=10000)
    bob = make_customer("bob")
    recipient = Recipient(user_id="alice", name="Bob", iban=bob.iban)
    db.add(recipient)
    db.commit()

    result = TransferService(db).send("alice", 300, recipient_id=str(recipient.id))

    assert result.recipient_credited is True
    assert _transactions(db, "alice", "sent")[0].recipient == "Bob"


def test_unknown_saved_recipient(db: Session, make_customer):
    make_customer("alice", balance_cents=10000)
    with pytest.raises(RecipientNotFoundError):
        TransferService(db).send("alice", 300, recipient_id="7b0c9a3e-0000-4000-8000-000000000000")


def test_self_transfer_and_missing_recipient_rejected(db: Session, make_customer):
    alice = make_customer("alice", balance_cents=10000)
    service = TransferService(db)

    with pytest.raises(InvalidOperationError):
        service.send("alice", 100, new_recipient={"name": "Me", "iban": alice.iban})
    with pytest.raises(InvalidOperationError):
        service.send("alice", 100)


def test_agent_withdrawal_creates_pending_records(db: Session, make_customer, make_agent):
    account = make_customer("alice", balance_cents=10000)
    agent = make_agent(name="Casa Cash")

    result = TransferService(db).withdraw("alice", 3000, "agents", agent_id=str(agent.id))

    assert result.contact_link.startswith("https://wa.me/212600000001?text=")
    agent_txn = db.query(AgentTransaction).one()
    assert agent_txn.reference_code == result.reference
    assert agent_txn.transaction_type == "withdrawal"
    assert agent_txn.status == "pending"
    withdrawal = _transactions(db, "alice", "withdrawal")[0]
    assert withdrawal.status == "pending"
    assert withdrawal.amount_cents == -3000
    db.expire_all()
    assert db.get(type(account), account.id).balance_cents == 10000


def test_withdrawal_requires_funds_and_agent(db: Session, make_customer):
    make_customer("alice", balance_cents=1000)
    service = TransferService(db)

    with pytest.raises(InsufficientFundsError):
        service.withdraw("alice", 5000, "western-union")
    with pytest.raises(AgentNotFoundError):
        service.withdraw("alice", 500, "agents")


def test_western_union_topup_requires_mtcn(db: Session, make_customer):
    make_customer("alice")
    service = TransferService(db)

    with pytest.raises(InvalidOperationError):
        service.top_up("alice", 5000, "western-union")

    deposit = service.top_up("alice", 5000, "western-union", mtcn="1234567890", sender_name="Omar")
    assert deposit.status == "pending"
    assert deposit.type == "deposit"
    assert deposit.reference.startswith("TP")
