"""Authentication schemas"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from dashboard_api.core.timeutils import utcnow
from dashboard_api.core.tokens import PrincipalType


class AdminLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class DeviceAuthRequest(BaseModel):
    device_id: str = Field(..., min_length=1, max_length=100)
    api_key: str = Field(..., min_length=1, max_length=256)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class AccessTokenResponse(BaseModel):
    """Response of a refresh; the refresh token is not rotated"""
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    expires_in: int
    principal_id: int
    principal_type: PrincipalType

    @classmethod
    def from_grant(cls, grant):
        return cls(
            access_token=grant.access_token,
            expires_at=grant.expires_at,
            expires_in=max(0, int((grant.expires_at - utcnow()).total_seconds())),
            principal_id=grant.principal_id,
            principal_type=grant.principal_type,
        )


class TokenBundleResponse(AccessTokenResponse):
    """Response of a login"""
    refresh_token: str

    @classmethod
    def from_bundle(cls, bundle):
        return cls(
            access_token=bundle.access_token,
            refresh_token=bundle.refresh_token,
            expires_at=bundle.expires_at,
            expires_in=max(0, int((bundle.expires_at - utcnow()).total_seconds())),
            principal_id=bundle.principal_id,
            principal_type=bundle.principal_type,
        )


class LogoutResponse(BaseModel):
    message: str = "Logged out successfully"
    token_version: int


class SessionRevokeRequest(BaseModel):
    principal_type: PrincipalType
    principal_id: int = Field(..., ge=1)


class SessionRevokeResponse(BaseModel):
    principal_type: PrincipalType
    principal_id: int
    token_version: int
    refresh_tokens_revoked: int


class AdminResponse(BaseModel):
    id: int
    email: str
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DashboardSummary(BaseModel):
    admins: int
    users: int
    devices: int
    active_devices: int
    articles: int
    published_articles: int
    active_refresh_tokens: int
