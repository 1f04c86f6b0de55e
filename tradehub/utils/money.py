"""Money formatting helpers"""


def format_amount(amount_cents: int) -> str:
    """12345 -> '123.45'"""
    sign = "-" if amount_cents < 0 else ""
    whole, cents = divmod(abs(amount_cents), 100)
    return f"{sign}{whole}.{cents:02d}"
