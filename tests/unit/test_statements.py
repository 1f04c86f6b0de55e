"""Unit tests for statement, tax summary and document processing"""

import pytest
from datetime import date, datetime, timezone
from sqlalchemy.orm import Session
from tradehub.domain.documents import (
    build_balance_certificate,
    build_statement,
    build_tax_summary,
    period_bounds,
    process_document,
)
from tradehub.domain.exceptions import InvalidOperationError
from tradehub.infrastructure.database.models import BankAccount, Document, Transaction


def _account(balance_cents: int) -> BankAccount:
    return BankAccount(
        user_id="alice",
        account_number="0123456789",
        iban="ES9121000418450123456789",
        swift_code="CAIXESBBXXX",
        bank_name="TradeHub Bank",
        account_type="Business Current Account",
        balance_cents=balance_cents,
        currency="EUR",
    )


def _txn(day: date, amount_cents: int, status: str = "completed", reference: str = "") -> Transaction:
    return Transaction(
        user_id="alice",
        type="deposit" if amount_cents > 0 else "sent",
        amount_cents=amount_cents,
        currency="EUR",
        recipient="Bob",
        status=status,
        reference=reference,
        created_at=datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc),
    )


def test_period_bounds():
    assert period_bounds("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    assert period_bounds("2023") == (date(2023, 1, 1), date(2023, 12, 31))
    with pytest.raises(InvalidOperationError):
        period_bounds("last-month")


def test_statement_running_balances():
    """Balances are reconstructed backwards from the current balance"""
    transactions = [
        _txn(date(2024, 1, 20), 10000, reference="TP1"),
        _txn(date(2024, 2, 3), -2500, reference="TH1"),
        _txn(date(2024, 2, 10), 4000, reference="TP2"),
        _txn(date(2024, 2, 11), 9999, status="pending"),
        _txn(date(2024, 3, 1), -1500, reference="TH2"),
    ]

    statement = build_statement(_account(10000), "Alice Smith", transactions, "2024-02")

    assert statement.opening_balance_cents == 10000
    assert [line.reference for line in statement.lines] == ["TH1", "TP2"]
    assert [line.balance_cents for line in statement.lines] == [7500, 11500]
    assert statement.closing_balance_cents == 11500
    assert statement.lines[0].description == "Payment to Bob"


def test_empty_statement_carries_opening_balance():
    statement = build_statement(_account(500), "", [_txn(date(2024, 1, 5), 500)], "2024-06")

    assert statement.lines == []
    assert statement.opening_balance_cents == statement.closing_balance_cents == 500
    assert statement.account_holder == "Account Holder"


def test_tax_summary_totals():
    transactions = [
        _txn(date(2022, 12, 31), 1000),
        _txn(date(2023, 3, 1), 5000),
        _txn(date(2023, 6, 1), -2000),
    ]

    summary = build_tax_summary(_account(4000), "Alice Smith", transactions, "2023")

    assert summary.total_deposits_cents == 5000
    assert summary.total_withdrawals_cents == 2000
    assert summary.transaction_count == 2
    assert 1000 <= summary.average_balance_cents <= 6000


def test_balance_certificate():
    certificate = build_balance_certificate(_account(12345), "Alice Smith", issued_on=date(2024, 5, 1))

    assert certificate.balance_cents == 12345
    assert certificate.swift_code == "CAIXESBBXXX"
    assert certificate.issued_on == date(2024, 5, 1)


async def test_process_document_marks_ready(db: Session):
    document = Document(user_id="alice", type="statement", title="January", status="processing")
    db.add(document)
    db.commit()

    await process_document(lambda: SharedSession(db), str(document.id), 0, "2.1 MB")

    db.refresh(document)
    assert document.status == "ready"
    assert document.file_size == "2.1 MB"


async def test_process_document_skips_expired(db: Session):
    document = Document(user_id="alice", type="statement", title="January", status="expired")
    db.add(document)
    db.commit()

    await process_document(lambda: SharedSession(db), str(document.id), 0, "2.1 MB")

    db.refresh(document)
    assert document.status == "expired"


class SharedSession:
    """Shares the test session with the job without letting it close it"""

    def __init__(self, db: Session):
        self._db = db

    def __getattr__(self, name):
        return getattr(self._db, name)

    def close(self):
        pass
