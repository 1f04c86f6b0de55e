"""Virtual card credential generation"""

import random
from datetime import date

from tradehub.domain.exceptions import InvalidOperationError
from tradehub.domain.models import GeneratedCard

CARD_PREFIX = "4532"  # Visa
CARD_NUMBER_LENGTH = 16


def generate_card_number() -> str:
    """
    Generate a 16-digit card number formatted in groups of four.

    Not cryptographically secure; card numbers are display credentials only.
    """
    digits = CARD_PREFIX + "".join(
        str(random.randint(0, 9)) for _ in range(CARD_NUMBER_LENGTH - len(CARD_PREFIX))
    )
    return " ".join(digits[i:i + 4] for i in range(0, CARD_NUMBER_LENGTH, 4))


def generate_expiry_date(today: date | None = None) -> str:
    """Random MM/YY expiry between one and three years ahead"""
    today = today or date.today()
    year = today.year + random.randint(1, 3)
    month = random.randint(1, 12)
    return f"{month:02d}/{year % 100:02d}"


def generate_cvv() -> str:
    return str(random.randint(100, 999))


def generate_card(today: date | None = None) -> GeneratedCard:
    return GeneratedCard(
        card_number=generate_card_number(),
        expiry_date=generate_expiry_date(today),
        cvv=generate_cvv(),
    )


def check_spend(status: str, balance_cents: int, amount_cents: int) -> None:
    """
    Validate a purchase against a card.

    Raises:
        InvalidOperationError: Card not active, non-positive amount or amount above balance
    """
    if amount_cents <= 0:
        raise InvalidOperationError("Amount must be positive")
    if status != "active":
        raise InvalidOperationError(f"Card is {status}")
    if amount_cents > balance_cents:
        raise InvalidOperationError("Amount exceeds card balance")
