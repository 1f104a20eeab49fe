from decimal import Decimal

DEFAULT_COMMISSION_RATE = Decimal("10.00")
MIN_COMMISSION_RATE = Decimal("0")
MAX_COMMISSION_RATE = Decimal("100")
RATE_QUANTUM = Decimal("0.01")
MONEY_QUANTUM = Decimal("0.01")
