from __future__ import annotations

from dataclasses import dataclass

from .exceptions import ApiError, NetworkError
from .stock_validation import ClientValidationError

NETWORK_ERROR_MESSAGE = "Network error. Check your connection and try again."


@dataclass(frozen=True)
class UserFacingError:
    message: str
    details: str | None = None
    retryable: bool = False

    @property
    def technical_details(self) -> str | None:
        if self.details:
            return self.details
        return None


def to_user_facing_error(exc: Exception) -> UserFacingError:
    if isinstance(exc, ClientValidationError):
        return UserFacingError(message=str(exc), details="CLIENT_VALIDATION")
    if isinstance(exc, NetworkError):
        return UserFacingError(message=NETWORK_ERROR_MESSAGE, details=f"{exc.code}: {exc.message}", retryable=True)
    if isinstance(exc, ApiError):
        primary = exc.message.strip() or "Request failed"
        details = f"{exc.code} (HTTP {exc.status_code})"
        if exc.details:
            details = f"{details}: {exc.details}"
        return UserFacingError(message=primary, details=details)
    return UserFacingError(message=str(exc) or "Unexpected client error")
