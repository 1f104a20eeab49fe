from __future__ import annotations

import pytest

from app.economy.countries import normalize_country_code, normalize_currency_code
from app.economy.errors import ValidationError


def test_country_codes_are_trimmed_and_upper_cased() -> None:
    assert normalize_country_code(" ng ") == "NG"
    assert normalize_country_code("") is None
    assert normalize_country_code(None) is None


@pytest.mark.parametrize("value", ["NGA", "N", "1A"])
def test_malformed_country_codes_are_rejected(value: str) -> None:
    with pytest.raises(ValidationError):
        normalize_country_code(value)


def test_currency_codes() -> None:
    assert normalize_currency_code("ngn") == "NGN"
    with pytest.raises(ValidationError):
        normalize_currency_code("NAIRA")
