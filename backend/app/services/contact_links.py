from __future__ import annotations

import re
from urllib.parse import quote

from app.core.config import settings


def build_contact_link(message: str, phone_number: str | None = None, *, base_url: str | None = None) -> str:
    """wa.me deep link with a prefilled message, optionally to a specific number."""
    base = (base_url or settings.CONTACT_LINK_BASE_URL).rstrip("/") + "/"
    text = quote(message, safe="")
    if phone_number and phone_number.strip():
        digits = re.sub(r"[^+\d]", "", phone_number)
        return f"{base}{digits}?text={text}"
    return f"{base}?text={text}"


def match_message(name_a: str, name_b: str, venue_name: str | None = None) -> str:
    where = f" at {venue_name}" if venue_name else ""
    return f"Hey {name_b}! It's {name_a}, we matched{where} tonight. Let's keep the vibe going"
