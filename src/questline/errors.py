"""Domain errors mapped to HTTP responses by the global error handlers."""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors that carry their own HTTP status."""

    status_code: int = 500
    detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class NoRewardsAvailable(AppError):
    """Claim attempted while the claimable referral balance is zero."""

    status_code = 400
    detail = "No rewards available to claim"


class NotFoundError(AppError):
    status_code = 404
    detail = "Not found"


class ConflictError(AppError):
    status_code = 409
    detail = "Conflict"


class StoreError(AppError):
    """The underlying persistence layer failed. Nothing was committed."""

    status_code = 500
    detail = "Storage failure"
