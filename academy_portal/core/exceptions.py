from typing import Any, Dict, Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def detail(self) -> Any:
        """Payload for HTTPException.detail."""
        return self.message


class AuthorizationError(ServiceError):
    """Caller is missing, invalid, or not allowed to act on the target."""

    def __init__(self, message: str, status_code: int = status.HTTP_403_FORBIDDEN) -> None:
        super().__init__(message, status_code)


class ConfigurationError(ServiceError):
    """Caller resolved but is not attached to a usable academy."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotFoundError(ServiceError):
    """Entity absent in the caller's academy. Also raised for cross-tenant lookups."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ValidationError(ServiceError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)
        self.details = details or {}

    @property
    def detail(self) -> Any:
        if not self.details:
            return self.message
        return {"message": self.message, **self.details}


class ConflictError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class SynchronizationError(ServiceError):
    """A multi-step write failed for a reason other than a domain rule."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
