from __future__ import annotations


class RewardEconomyError(Exception):
    """Business-rule violation detected inside a reward-economy operation.

    Raised inside the transaction scope so that the surrounding
    ``SessionLocal.begin()`` block rolls back every write made so far.
    """

    code = "E_REWARD_ECONOMY"
    default_message = "The request could not be completed."

    def __init__(self, message: str | None = None, **context: object) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class ValidationError(RewardEconomyError):
    code = "E_VALIDATION"
    default_message = "The request contains invalid values."


class StalePriceError(ValidationError):
    code = "E_PRICE_CHANGED"
    default_message = "The price of this item has changed. Please review the new price and try again."


class NotEligibleError(RewardEconomyError):
    code = "E_NOT_ELIGIBLE"
    default_message = "You are not eligible for this reward right now."


class AlreadyClaimedError(NotEligibleError):
    code = "E_ALREADY_CLAIMED"
    default_message = "You already did this today. Come back after midnight UTC."


class AccountSuspendedError(NotEligibleError):
    code = "E_ACCOUNT_SUSPENDED"
    default_message = "Your account is suspended."


class TriviaQuestionExpiredError(NotEligibleError):
    code = "E_TRIVIA_EXPIRED"
    default_message = "This trivia question has expired. Ask for today's question."


class AlreadySubmittedError(RewardEconomyError):
    code = "E_ALREADY_SUBMITTED"
    default_message = "You already answered this question."


class InsufficientPointsError(RewardEconomyError):
    code = "E_INSUFFICIENT_POINTS"
    default_message = "You don't have enough points."


class InsufficientBalanceError(RewardEconomyError):
    code = "E_INSUFFICIENT_BALANCE"
    default_message = "Your payable balance is too low for this payout."


class OutOfStockError(RewardEconomyError):
    code = "E_OUT_OF_STOCK"
    default_message = "This item is out of stock."


class ItemInactiveError(RewardEconomyError):
    code = "E_ITEM_INACTIVE"
    default_message = "This item is no longer available."


class UnauthorizedError(RewardEconomyError):
    code = "E_UNAUTHORIZED"
    default_message = "You are not allowed to perform this action."


class NotFoundError(RewardEconomyError):
    code = "E_NOT_FOUND"
    default_message = "The requested record was not found."


class NoTriviaQuestionsError(NotFoundError):
    code = "E_NO_TRIVIA_QUESTIONS"
    default_message = "No trivia questions are available right now."


class PaymentGatewayError(RewardEconomyError):
    code = "E_PAYMENT_GATEWAY"
    default_message = "The payment provider could not start the payment."


class StoreUnavailableError(Exception):
    """The backing store failed for a reason unrelated to business rules."""

    code = "E_STORE_UNAVAILABLE"
    retryable = False


class StoreBusyError(StoreUnavailableError):
    """A row lock could not be acquired in time; the caller may retry."""

    code = "E_STORE_BUSY"
    retryable = True
