"""Operation references, verification codes and account identifiers"""

import random
import string
import time

TRANSFER_PREFIX = "TH"
WITHDRAWAL_PREFIX = "WD"
TOPUP_PREFIX = "TP"
AGENT_PREFIX = "AG"

_BASE36 = string.digits + string.ascii_uppercase


def generate_operation_reference(prefix: str, now_ms: int | None = None) -> str:
    """
    Build a human-readable operation reference.

    Format: prefix + last 8 digits of the millisecond clock + 4 base-36 chars,
    e.g. "TH12345678K3ZQ". Not guaranteed unique; callers do not rely on it
    as an idempotency key.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    timestamp = str(now_ms)[-8:]
    suffix = "".join(random.choice(_BASE36) for _ in range(4))
    return f"{prefix}{timestamp}{suffix}"


def generate_verification_code(length: int = 6) -> str:
    """Numeric code with no leading zero (100000-999999 for length 6)"""
    low = 10 ** (length - 1)
    return str(random.randint(low, 10 * low - 1))


def generate_account_number() -> str:
    return f"{random.randint(0, 9_999_999_999):010d}"


def build_iban(prefix: str, account_number: str) -> str:
    return f"{prefix}{account_number}"
