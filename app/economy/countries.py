from __future__ import annotations

import re

from app.economy.errors import ValidationError

_ALPHA2_RE = re.compile(r"^[A-Z]{2}$")
_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def normalize_country_code(value: str | None) -> str | None:
    """Returns an upper-case ISO 3166 alpha-2 code, or None for a blank value."""
    if value is None:
        return None
    normalized = value.strip().upper()
    if not normalized:
        return None
    if _ALPHA2_RE.match(normalized) is None:
        raise ValidationError("Country must be a two-letter ISO code.", country=value)
    return normalized


def normalize_currency_code(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().upper()
    if not normalized:
        return None
    if _CURRENCY_RE.match(normalized) is None:
        raise ValidationError("Currency must be a three-letter ISO code.", currency=value)
    return normalized
