from fastapi import status
from typing import Any, Optional


class AppException(Exception):
    """
    Base exception for every error the application reports to clients.
    """
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        errors: Optional[Any] = None,
        headers: Optional[dict] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.errors = errors
        self.headers = headers
        super().__init__(self.message)


class ValidationException(AppException):
    """Malformed or missing input."""
    def __init__(self, message: str = "Validation failed", errors: Optional[list] = None, error_code: str = "VALIDATION_ERROR"):
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, error_code=error_code, errors=errors)


class UnauthorizedException(AppException):
    """Missing, invalid or expired credentials."""
    def __init__(self, message: str = "Unauthorized", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenException(AppException):
    """Valid identity without the required role or ownership."""
    def __init__(self, message: str = "Forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN, error_code=error_code)


class NotFoundException(AppException):
    def __init__(self, message: str = "Resource not found", error_code: str = "NOT_FOUND"):
        super().__init__(message=message, status_code=status.HTTP_404_NOT_FOUND, error_code=error_code)


class ConflictException(AppException):
    """A state-transition precondition or uniqueness rule was violated."""
    def __init__(self, message: str = "Conflict", error_code: str = "CONFLICT"):
        super().__init__(message=message, status_code=status.HTTP_409_CONFLICT, error_code=error_code)


class TooManyRequestsException(AppException):
    def __init__(self, message: str = "Too many requests. Please try again later.", error_code: str = "RATE_LIMITED"):
        super().__init__(message=message, status_code=status.HTTP_429_TOO_MANY_REQUESTS, error_code=error_code)


class StorageException(AppException):
    """Persistence-layer failure. The message is safe to show; the cause is logged."""
    def __init__(self, message: str = "Storage error", error_code: str = "STORAGE_ERROR"):
        super().__init__(message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, error_code=error_code)


class ExternalServiceException(AppException):
    """An outside collaborator (AI, file storage) failed."""
    def __init__(self, message: str = "External service error", error_code: str = "EXTERNAL_SERVICE_ERROR"):
        super().__init__(message=message, status_code=status.HTTP_502_BAD_GATEWAY, error_code=error_code)


# Token verification failures

class MalformedTokenError(UnauthorizedException):
    def __init__(self, message: str = "Invalid token"):
        super().__init__(message=message, error_code="TOKEN_MALFORMED")


class InvalidSignatureError(UnauthorizedException):
    def __init__(self, message: str = "Invalid token"):
        super().__init__(message=message, error_code="TOKEN_INVALID_SIGNATURE")


class TokenExpiredError(UnauthorizedException):
    def __init__(self, message: str = "Token expired"):
        super().__init__(message=message, error_code="TOKEN_EXPIRED")


class TokenNotYetValidError(UnauthorizedException):
    def __init__(self, message: str = "Token not active"):
        super().__init__(message=message, error_code="TOKEN_NOT_YET_VALID")
