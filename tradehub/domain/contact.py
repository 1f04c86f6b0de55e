"""WhatsApp deep links, the support and agent contact channel"""

import re
from urllib.parse import quote

WHATSAPP_BASE = "https://wa.me"


def build_whatsapp_link(phone: str, message: str | None = None) -> str:
    """wa.me link for a phone number; non-digits are stripped"""
    digits = re.sub(r"[^0-9]", "", phone)
    link = f"{WHATSAPP_BASE}/{digits}"
    if message:
        link += f"?text={quote(message, safe='')}"
    return link


def agent_withdrawal_message(agent_name: str, amount_cents: int, currency: str, reference: str) -> str:
    return (
        f"Hello {agent_name}, I would like to withdraw {amount_cents / 100:.2f} {currency}. "
        f"Transaction reference: {reference}"
    )
