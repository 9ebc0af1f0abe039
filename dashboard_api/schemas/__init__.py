"""Pydantic schemas for API validation"""

from dashboard_api.schemas.auth import (
    AdminLogin,
    AdminResponse,
    AccessTokenResponse,
    DashboardSummary,
    DeviceAuthRequest,
    LogoutResponse,
    RefreshRequest,
    SessionRevokeRequest,
    SessionRevokeResponse,
    TokenBundleResponse,
)
from dashboard_api.schemas.user import (
    ChangePasswordRequest,
    UserCreate,
    UserCredentials,
    UserLogin,
    UserRegister,
    UserResponse,
    UserUpdate,
)
from dashboard_api.schemas.device import DeviceCreate, DeviceCredentials, DeviceResponse, DeviceUpdate
from dashboard_api.schemas.article import ArticleCreate, ArticleResponse, ArticleUpdate
from dashboard_api.schemas.response import APIResponse, ErrorResponse, PaginatedResponse

__all__ = [
    "AdminLogin", "AdminResponse", "AccessTokenResponse", "DashboardSummary", "DeviceAuthRequest",
    "LogoutResponse", "RefreshRequest", "SessionRevokeRequest", "SessionRevokeResponse", "TokenBundleResponse",
    "ChangePasswordRequest", "UserCreate", "UserCredentials", "UserLogin", "UserRegister", "UserResponse",
    "UserUpdate",
    "DeviceCreate", "DeviceCredentials", "DeviceResponse", "DeviceUpdate",
    "ArticleCreate", "ArticleResponse", "ArticleUpdate",
    "APIResponse", "ErrorResponse", "PaginatedResponse",
]
