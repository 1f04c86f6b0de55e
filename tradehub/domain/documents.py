"""Statement, certificate and tax document content, plus the processing job"""

import asyncio
import calendar
import logging
from datetime import date
from typing import Callable, Dict, List, Sequence, Tuple

from sqlalchemy.orm import Session

from tradehub.domain.exceptions import InvalidOperationError
from tradehub.domain.models import BalanceCertificate, StatementData, StatementLine, TaxSummary
from tradehub.infrastructure.database.models import BankAccount, Transaction
from tradehub.infrastructure.database.repositories import DocumentRepository
from tradehub.utils.date_utils import generate_date_range

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = ("statement", "certificate", "tax-document")

# Only settled lines move the balance
SETTLED_STATUSES = ("completed", "approved")


def period_bounds(period: str) -> Tuple[date, date]:
    """
    Inclusive date bounds for "YYYY-MM" or "YYYY".

    Raises:
        InvalidOperationError: Unparseable period
    """
    try:
        if len(period) == 4:
            year = int(period)
            return date(year, 1, 1), date(year, 12, 31)
        year_str, month_str = period.split("-")
        year, month = int(year_str), int(month_str)
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, 1), date(year, month, last_day)
    except ValueError as e:
        raise InvalidOperationError(f"Invalid period: {period}") from e


def _txn_date(txn: Transaction) -> date:
    return txn.created_at.date()


def _settled(transactions: Sequence[Transaction]) -> List[Transaction]:
    return sorted(
        (t for t in transactions if t.status in SETTLED_STATUSES),
        key=lambda t: t.created_at,
    )


def _balance_after_each(current_balance_cents: int, settled: List[Transaction]) -> List[int]:
    """Running balance after each settled transaction, walking back from the current balance"""
    balances = [0] * len(settled)
    running = current_balance_cents
    for i in range(len(settled) - 1, -1, -1):
        balances[i] = running
        running -= settled[i].amount_cents
    return balances


def build_statement(
    account: BankAccount,
    holder: str,
    transactions: Sequence[Transaction],
    period: str,
) -> StatementData:
    """Statement for a period with running balances reconstructed from the current balance"""
    start, end = period_bounds(period)
    settled = _settled(transactions)
    balances = _balance_after_each(account.balance_cents, settled)

    opening = account.balance_cents - sum(t.amount_cents for t in settled)
    lines: List[StatementLine] = []
    for txn, balance in zip(settled, balances):
        txn_day = _txn_date(txn)
        if txn_day < start:
            opening = balance
            continue
        if txn_day > end:
            break
        lines.append(
            StatementLine(
                date=txn_day,
                description=txn.description
                or f"{'Payment to' if txn.amount_cents < 0 else 'Payment from'} {txn.recipient or txn.sender or 'Unknown'}",
                amount_cents=txn.amount_cents,
                balance_cents=balance,
                reference=txn.reference or "",
            )
        )

    closing = lines[-1].balance_cents if lines else opening
    return StatementData(
        account_number=account.account_number,
        iban=account.iban,
        account_holder=holder or "Account Holder",
        period=period,
        currency=account.currency,
        opening_balance_cents=opening,
        closing_balance_cents=closing,
        lines=lines,
    )


def build_tax_summary(
    account: BankAccount,
    holder: str,
    transactions: Sequence[Transaction],
    year: str,
) -> TaxSummary:
    """
    Yearly totals for a tax declaration.

    Average balance uses one balance per day with carry-forward for days
    without transactions, over the part of the year already elapsed.
    """
    start, end = period_bounds(year)
    end = min(end, date.today())
    settled = _settled(transactions)
    balances = _balance_after_each(account.balance_cents, settled)

    in_year = [t for t in settled if start <= _txn_date(t) <= end]
    deposits = sum(t.amount_cents for t in in_year if t.amount_cents > 0)
    withdrawals = sum(-t.amount_cents for t in in_year if t.amount_cents < 0)

    # Balance at end of each day that had activity
    balance_by_date: Dict[date, int] = {}
    last_known_balance = account.balance_cents - sum(t.amount_cents for t in settled)
    for txn, balance in zip(settled, balances):
        if _txn_date(txn) < start:
            last_known_balance = balance
        else:
            balance_by_date[_txn_date(txn)] = balance

    daily_balances = []
    if start <= end:
        for day in generate_date_range(start, end):
            if day in balance_by_date:
                last_known_balance = balance_by_date[day]
            daily_balances.append(last_known_balance)

    average = sum(daily_balances) // len(daily_balances) if daily_balances else account.balance_cents

    return TaxSummary(
        account_number=account.account_number,
        account_holder=holder or "Account Holder",
        year=year,
        currency=account.currency,
        total_deposits_cents=deposits,
        total_withdrawals_cents=withdrawals,
        average_balance_cents=average,
        transaction_count=len(in_year),
    )


def build_balance_certificate(account: BankAccount, holder: str, issued_on: date | None = None) -> BalanceCertificate:
    return BalanceCertificate(
        account_holder=holder or "Account Holder",
        iban=account.iban,
        swift_code=account.swift_code,
        bank_name=account.bank_name,
        balance_cents=account.balance_cents,
        currency=account.currency,
        issued_on=issued_on or date.today(),
    )


async def process_document(
    session_factory: Callable[[], Session],
    document_id: str,
    delay_seconds: float,
    file_size: str,
) -> None:
    """Background job: wait, then flip a processing document to ready"""
    if delay_seconds > 0:
        await asyncio.sleep(delay_seconds)

    db = session_factory()
    try:
        repo = DocumentRepository(db)
        document = repo.get(document_id)
        if document is None or document.status != "processing":
            logger.info("Document no longer awaiting processing", extra={"document_id": document_id})
            return
        repo.mark_ready(document, file_size)
        db.commit()
        logger.info("Document ready", extra={"document_id": document_id})
    except Exception:
        db.rollback()
        logger.exception("Document processing failed", extra={"document_id": document_id})
        raise
    finally:
        db.close()
