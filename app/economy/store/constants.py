ITEM_TYPES = frozenset(
    {
        "gift_card",
        "subscription_code",
        "paypal_payout",
        "bank_transfer",
        "physical_item",
    }
)

STATUS_PENDING_FULFILLMENT = "pending_fulfillment"
STATUS_FULFILLED = "fulfilled"
STATUS_CANCELLED = "cancelled"
REDEMPTION_STATUSES = frozenset({STATUS_PENDING_FULFILLMENT, STATUS_FULFILLED, STATUS_CANCELLED})

ALLOWED_STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_PENDING_FULFILLMENT: frozenset({STATUS_FULFILLED, STATUS_CANCELLED}),
    STATUS_FULFILLED: frozenset(),
    STATUS_CANCELLED: frozenset(),
}

MAX_IDEMPOTENCY_KEY_LENGTH = 96
MAX_PAGE_SIZE = 100
