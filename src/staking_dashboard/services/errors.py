"""Domain exceptions and their HTTP mapping."""
from dataclasses import dataclass

from fastapi import HTTPException, status


class StakingError(Exception):
    """Base for errors raised by the service layer."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(StakingError):
    """Request data failed validation."""


class InvalidAmountError(InvalidInputError):
    """Amount is missing, non-positive or below the configured minimum."""


class UnsupportedCoinError(StakingError):
    """Coin is unknown or not enabled for staking."""


class InsufficientBalanceError(StakingError):
    """Requested amount exceeds what the user can withdraw or transfer."""


class ConflictError(StakingError):
    status_code = status.HTTP_409_CONFLICT


class NotFoundError(StakingError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthError(StakingError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(StakingError):
    status_code = status.HTTP_403_FORBIDDEN


@dataclass(frozen=True)
class ServiceErrorMapper:
    """Maps service-layer exceptions to HTTP (status_code, detail)."""

    resource_name: str = "Resource"

    def to_http(self, exc: Exception) -> tuple[int, str]:
        if isinstance(exc, StakingError):
            return (exc.status_code, exc.message)
        if isinstance(exc, LookupError):
            return (status.HTTP_404_NOT_FOUND, f"{self.resource_name} not found")
        return (status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    def raise_http(self, exc: Exception) -> None:
        """Map exception to HTTP and raise HTTPException. Never returns."""
        status_code, detail = self.to_http(exc)
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        raise HTTPException(status_code=status_code, detail=detail, headers=headers) from exc
