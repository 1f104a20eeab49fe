ENTRY_TYPE_SPIN = "SPIN"
ENTRY_TYPE_TRIVIA = "TRIVIA"
ENTRY_TYPE_WATCH_AD = "WATCH_AD"
ENTRY_TYPE_REDEMPTION = "REDEMPTION"
ENTRY_TYPE_REDEMPTION_REFUND = "REDEMPTION_REFUND"
ENTRY_TYPE_ADMIN_ADJUSTMENT = "ADMIN_ADJUSTMENT"

ENTRY_TYPES = frozenset(
    {
        ENTRY_TYPE_SPIN,
        ENTRY_TYPE_TRIVIA,
        ENTRY_TYPE_WATCH_AD,
        ENTRY_TYPE_REDEMPTION,
        ENTRY_TYPE_REDEMPTION_REFUND,
        ENTRY_TYPE_ADMIN_ADJUSTMENT,
    }
)
REWARD_ENTRY_TYPES = (ENTRY_TYPE_SPIN, ENTRY_TYPE_TRIVIA, ENTRY_TYPE_WATCH_AD)

DIRECTION_CREDIT = "CREDIT"
DIRECTION_DEBIT = "DEBIT"

MAX_HISTORY_LIMIT = 200
