from app.db.repo.admin_audit_repo import AdminAuditRepo
from app.db.repo.ambassadors_repo import AmbassadorsRepo
from app.db.repo.app_settings_repo import AppSettingsRepo
from app.db.repo.commission_repo import CommissionRepo
from app.db.repo.daily_rewards_repo import DailyRewardsRepo
from app.db.repo.exchange_rates_repo import ExchangeRatesRepo
from app.db.repo.payment_transactions_repo import PaymentTransactionsRepo
from app.db.repo.payout_requests_repo import PayoutRequestsRepo
from app.db.repo.points_ledger_repo import PointsLedgerRepo
from app.db.repo.profiles_repo import ProfilesRepo
from app.db.repo.redemptions_repo import RedemptionsRepo
from app.db.repo.store_repo import StoreItemsRepo
from app.db.repo.trivia_repo import TriviaRepo

__all__ = [
    "AdminAuditRepo",
    "AmbassadorsRepo",
    "AppSettingsRepo",
    "CommissionRepo",
    "DailyRewardsRepo",
    "ExchangeRatesRepo",
    "PaymentTransactionsRepo",
    "PayoutRequestsRepo",
    "PointsLedgerRepo",
    "ProfilesRepo",
    "RedemptionsRepo",
    "StoreItemsRepo",
    "TriviaRepo",
]
