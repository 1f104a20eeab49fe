from __future__ import annotations

from fastapi import HTTPException, status

from app.economy.errors import (
    AlreadySubmittedError,
    InsufficientBalanceError,
    InsufficientPointsError,
    ItemInactiveError,
    NotEligibleError,
    NotFoundError,
    OutOfStockError,
    PaymentGatewayError,
    RewardEconomyError,
    StoreBusyError,
    StoreUnavailableError,
    UnauthorizedError,
    ValidationError,
)

RETRY_AFTER_SECONDS = "1"

# Checked in order; subclasses sit before their bases.
_STATUS_BY_ERROR: tuple[tuple[type[Exception], int], ...] = (
    (NotEligibleError, status.HTTP_409_CONFLICT),
    (AlreadySubmittedError, status.HTTP_409_CONFLICT),
    (InsufficientPointsError, status.HTTP_402_PAYMENT_REQUIRED),
    (InsufficientBalanceError, status.HTTP_402_PAYMENT_REQUIRED),
    (OutOfStockError, status.HTTP_410_GONE),
    (ItemInactiveError, status.HTTP_410_GONE),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (PaymentGatewayError, status.HTTP_502_BAD_GATEWAY),
)


def _detail(code: str, message: str, context: dict[str, object] | None = None) -> dict[str, object]:
    detail: dict[str, object] = {"code": code, "message": message}
    if context:
        detail["context"] = context
    return detail


def _public_context(exc: RewardEconomyError) -> dict[str, object]:
    return {key: value for key, value in exc.context.items() if isinstance(value, (str, int, bool)) or value is None}


def to_http_exception(exc: RewardEconomyError | StoreUnavailableError) -> HTTPException:
    if isinstance(exc, StoreBusyError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=_detail(exc.code, "The service is busy. Please try again."),
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )
    if isinstance(exc, StoreUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=_detail(exc.code, "The service is temporarily unavailable."),
        )

    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped_status
            break
    return HTTPException(
        status_code=status_code,
        detail=_detail(exc.code, exc.message, _public_context(exc)),
    )
