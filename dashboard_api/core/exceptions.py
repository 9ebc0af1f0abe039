"""Custom exception classes for the application"""

from typing import Optional, Dict, Any


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if code:
            self.code = code
        super().__init__(self.message)


class ConfigurationError(Exception):
    """Process cannot start with the current configuration"""


# Authentication Errors
class AuthenticationError(BaseAPIException):
    """Base authentication error"""
    code = "AUTHENTICATION_FAILED"

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


class UnauthenticatedError(AuthenticationError):
    """No bearer credentials on a protected route"""
    code = "AUTHENTICATION_REQUIRED"

    def __init__(self):
        super().__init__("Authentication required. Please provide a valid Bearer token")


class InvalidCredentialsError(AuthenticationError):
    """Identifier or secret did not match; deliberately unspecific"""
    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class TokenError(AuthenticationError):
    """
    Access or refresh token failed verification.

    Every subclass renders the same client-visible message and code; the
    specific failure is kept in ``reason`` for server-side logging.
    """
    code = "INVALID_TOKEN"
    reason = "invalid"

    def __init__(self, detail: str = ""):
        super().__init__("Invalid or expired token")
        self.detail = detail or self.reason


class TokenMalformedError(TokenError):
    reason = "malformed"


class TokenExpiredError(TokenError):
    reason = "expired"


class TokenInvalidSignatureError(TokenError):
    reason = "invalid_signature"


class TokenWrongKindError(TokenError):
    reason = "wrong_kind"


class UnknownPrincipalTypeError(TokenError):
    reason = "unknown_principal_type"


class TokenRevokedError(AuthenticationError):
    """Token version no longer matches the principal; client must log in again"""
    code = "TOKEN_REVOKED"

    def __init__(self):
        super().__init__("Token has been revoked. Please login again")


class InvalidRefreshTokenError(AuthenticationError):
    """Refresh token unusable; client must log in again"""
    code = "INVALID_REFRESH_TOKEN"
    reason = "invalid"

    def __init__(self, detail: str = ""):
        super().__init__("Invalid refresh token")
        self.detail = detail or self.reason


class RefreshTokenNotFoundError(InvalidRefreshTokenError):
    reason = "not_found"


class RefreshTokenRevokedError(InvalidRefreshTokenError):
    reason = "revoked"


class RefreshTokenExpiredError(InvalidRefreshTokenError):
    reason = "expired"


class RefreshTokenTypeMismatchError(InvalidRefreshTokenError):
    reason = "type_mismatch"


# Authorization Errors
class AuthorizationError(BaseAPIException):
    """Insufficient permissions"""
    code = "PERMISSION_DENIED"

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)


class PermissionDeniedError(AuthorizationError):
    """Role gate rejected the authenticated principal"""
    def __init__(self, message: str = "Forbidden: you don't have permission to access this resource"):
        super().__init__(message)


# Resource Errors
class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""
    code = "NOT_FOUND"

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", status_code=404)


class ResourceAlreadyExistsError(BaseAPIException):
    """Resource already exists"""
    code = "ALREADY_EXISTS"

    def __init__(self, resource: str):
        super().__init__(f"{resource} already exists", status_code=409)


# Validation Errors
class ValidationError(BaseAPIException):
    """Validation error"""
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=422, details=details)


# Business Logic Errors
class BusinessLogicError(BaseAPIException):
    """Business logic error"""
    code = "BAD_REQUEST"

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class RateLimitExceededError(BaseAPIException):
    """Rate limit exceeded"""
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str = "Rate limit exceeded. Please try again later"):
        super().__init__(message, status_code=429)
