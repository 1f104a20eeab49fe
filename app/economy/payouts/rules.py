from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from app.economy.errors import InsufficientBalanceError, ValidationError
from app.economy.payouts.constants import (
    ALLOWED_STATUS_TRANSITIONS,
    DETAIL_BANK_DETAILS,
    DETAIL_PAYPAL_EMAIL,
    MAX_ADMIN_NOTES_LENGTH,
    MAX_TRANSACTION_ID_LENGTH,
    MONEY_QUANTUM,
    PAYOUT_METHODS,
    PAYOUT_STATUSES,
)
from app.economy.payouts.types import PayoutMethodRule


def to_money(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError("Amounts must be numeric.", value=str(value)) from exc


def validate_payout_amount(value: object) -> Decimal:
    """Accepts a positive amount with at most two decimal places."""
    if isinstance(value, bool):
        raise ValidationError("Payout amount must be numeric.")
    amount = to_money(value)
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Payout amount must be greater than zero.")
    if amount != amount.quantize(MONEY_QUANTUM):
        raise ValidationError("Payout amount can have at most two decimal places.")
    return amount.quantize(MONEY_QUANTUM)


def payable_balance(*, total_earnings: object, total_payouts: object, reserved_payouts: object) -> Decimal:
    balance = to_money(total_earnings) - to_money(total_payouts) - to_money(reserved_payouts)
    if balance < 0:
        return Decimal("0.00")
    return balance.quantize(MONEY_QUANTUM)


def resolve_payout_method(name: str | None) -> PayoutMethodRule:
    method = PAYOUT_METHODS.get((name or "").strip().lower())
    if method is None:
        raise ValidationError("Invalid payout method.", payout_method=name)
    return method


def ensure_within_balance(amount: Decimal, balance: Decimal) -> None:
    if amount > balance:
        raise InsufficientBalanceError(
            f"Insufficient balance. Your available balance is ${balance:.2f}",
            requested=str(amount),
            available=str(balance),
        )


def ensure_method_minimum(amount: Decimal, method: PayoutMethodRule) -> None:
    if amount < method.min_amount:
        raise ValidationError(
            f"Minimum payout amount for {method.label} is ${method.min_amount:.2f}",
            payout_method=method.name,
            minimum=str(method.min_amount),
        )


def _clean_paypal_email(value: Any) -> str:
    email = value.strip() if isinstance(value, str) else ""
    local, _, domain = email.partition("@")
    if not local or "." not in domain:
        raise ValidationError("PayPal email is required for PayPal payouts.")
    return email


def _clean_bank_details(value: Any) -> dict[str, object]:
    if not isinstance(value, Mapping) or not value:
        raise ValidationError("Bank details are required for bank transfers.")
    return dict(value)


def build_payout_details(
    method: PayoutMethodRule,
    details: Mapping[str, Any] | None,
    *,
    user_email: str | None,
    user_country: str | None,
) -> dict[str, object]:
    """Validates the method-specific fields and stamps who the money goes to."""
    clean: dict[str, object] = dict(details or {})
    if method.required_detail == DETAIL_PAYPAL_EMAIL:
        clean[DETAIL_PAYPAL_EMAIL] = _clean_paypal_email(clean.get(DETAIL_PAYPAL_EMAIL))
    elif method.required_detail == DETAIL_BANK_DETAILS:
        clean[DETAIL_BANK_DETAILS] = _clean_bank_details(clean.get(DETAIL_BANK_DETAILS))
    clean["user_email"] = user_email
    clean["user_country"] = user_country
    return clean


def ensure_status_transition(from_status: str, to_status: str) -> None:
    if to_status not in PAYOUT_STATUSES:
        raise ValidationError("Unknown payout status.", status=to_status)
    if to_status not in ALLOWED_STATUS_TRANSITIONS.get(from_status, frozenset()):
        raise ValidationError(
            "This payout status change is not allowed.",
            from_status=from_status,
            to_status=to_status,
        )


def clean_admin_text(value: str | None, *, field: str, max_length: int) -> str | None:
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(f"{field} is too long.", max_length=max_length)
    return text


def clean_admin_notes(value: str | None) -> str | None:
    return clean_admin_text(value, field="Admin notes", max_length=MAX_ADMIN_NOTES_LENGTH)


def clean_transaction_id(value: str | None) -> str | None:
    return clean_admin_text(value, field="Transaction id", max_length=MAX_TRANSACTION_ID_LENGTH)
