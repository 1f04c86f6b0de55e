"""Domain models - pure Python dataclasses passed between layers"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


@dataclass
class GeneratedCard:
    """Card credentials produced at issue time"""

    card_number: str  # "4532 XXXX XXXX XXXX"
    expiry_date: str  # "MM/YY"
    cvv: str


@dataclass
class TransferResult:
    """Outcome of a money transfer"""

    reference: str
    amount_cents: int
    new_balance_cents: int
    sender_transaction_id: str
    recipient_credited: bool = False
    recipient_transaction_id: Optional[str] = None


@dataclass
class WithdrawalResult:
    """Outcome of a withdrawal request"""

    reference: str
    amount_cents: int
    transaction_id: str
    agent_transaction_id: Optional[str] = None
    contact_link: Optional[str] = None


@dataclass
class StatementLine:
    """Single row of an account statement"""

    date: date
    description: str
    amount_cents: int
    balance_cents: int
    reference: str


@dataclass
class StatementData:
    """Account statement content"""

    account_number: str
    iban: str
    account_holder: str
    period: str
    currency: str
    opening_balance_cents: int
    closing_balance_cents: int
    lines: List[StatementLine] = field(default_factory=list)


@dataclass
class TaxSummary:
    """Yearly figures for a tax declaration"""

    account_number: str
    account_holder: str
    year: str
    currency: str
    total_deposits_cents: int
    total_withdrawals_cents: int
    average_balance_cents: int
    transaction_count: int


@dataclass
class BalanceCertificate:
    """Balance certificate content"""

    account_holder: str
    iban: str
    swift_code: str
    bank_name: str
    balance_cents: int
    currency: str
    issued_on: date
