from decimal import Decimal

from app.economy.payouts.types import PayoutMethodRule

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_PROCESSED = "processed"
STATUS_REJECTED = "rejected"
PAYOUT_STATUSES = frozenset({STATUS_PENDING, STATUS_APPROVED, STATUS_PROCESSED, STATUS_REJECTED})

# Money in these states is already promised and cannot be requested again.
RESERVED_STATUSES = frozenset({STATUS_PENDING, STATUS_APPROVED})

ALLOWED_STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_PENDING: frozenset({STATUS_APPROVED, STATUS_PROCESSED, STATUS_REJECTED}),
    STATUS_APPROVED: frozenset({STATUS_PROCESSED, STATUS_REJECTED}),
    STATUS_PROCESSED: frozenset(),
    STATUS_REJECTED: frozenset(),
}

METHOD_PAYPAL = "paypal"
METHOD_BANK_TRANSFER = "bank_transfer"
METHOD_MANUAL = "manual"

DETAIL_PAYPAL_EMAIL = "paypal_email"
DETAIL_BANK_DETAILS = "bank_details"

PAYOUT_METHODS: dict[str, PayoutMethodRule] = {
    METHOD_PAYPAL: PayoutMethodRule(
        name=METHOD_PAYPAL,
        label="PayPal",
        min_amount=Decimal("10.00"),
        required_detail=DETAIL_PAYPAL_EMAIL,
    ),
    METHOD_BANK_TRANSFER: PayoutMethodRule(
        name=METHOD_BANK_TRANSFER,
        label="Bank Transfer",
        min_amount=Decimal("50.00"),
        required_detail=DETAIL_BANK_DETAILS,
    ),
    METHOD_MANUAL: PayoutMethodRule(
        name=METHOD_MANUAL,
        label="Manual",
        min_amount=Decimal("100.00"),
    ),
}

MONEY_QUANTUM = Decimal("0.01")
MAX_ADMIN_NOTES_LENGTH = 2000
MAX_TRANSACTION_ID_LENGTH = 128
MAX_PAGE_SIZE = 100
