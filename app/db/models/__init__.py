from app.db.models.admin_audit_log import AdminAuditLog
from app.db.models.ambassador_referrals import AmbassadorReferral
from app.db.models.ambassadors import Ambassador
from app.db.models.app_settings import AppSetting
from app.db.models.commission_events import CommissionEvent
from app.db.models.commission_tiers import CommissionTier
from app.db.models.country_metrics import CountryMetric
from app.db.models.exchange_rates import ExchangeRate
from app.db.models.payment_transactions import PaymentTransaction
from app.db.models.payout_requests import PayoutRequest
from app.db.models.points_ledger import PointsLedgerEntry
from app.db.models.profiles import Profile
from app.db.models.redeemed_items import RedeemedItem
from app.db.models.redemption_status_events import RedemptionStatusEvent
from app.db.models.reward_claims import RewardClaim
from app.db.models.reward_store_items import RewardStoreItem
from app.db.models.trivia_issues import TriviaIssue
from app.db.models.trivia_questions import TriviaQuestion
from app.db.models.user_daily_rewards import UserDailyRewards

__all__ = [
    "AdminAuditLog",
    "Ambassador",
    "AmbassadorReferral",
    "AppSetting",
    "CommissionEvent",
    "CommissionTier",
    "CountryMetric",
    "ExchangeRate",
    "PaymentTransaction",
    "PayoutRequest",
    "PointsLedgerEntry",
    "Profile",
    "RedeemedItem",
    "RedemptionStatusEvent",
    "RewardClaim",
    "RewardStoreItem",
    "TriviaIssue",
    "TriviaQuestion",
    "UserDailyRewards",
]
