"""Authentication routes - admin login, device auth, refresh and logout"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from dashboard_api.core.database import get_db
from dashboard_api.core.tokens import PrincipalType
from dashboard_api.schemas.auth import (
    AccessTokenResponse,
    AdminLogin,
    AdminResponse,
    DeviceAuthRequest,
    LogoutResponse,
    RefreshRequest,
    TokenBundleResponse,
)
from dashboard_api.services.auth_service import AuthenticatedPrincipal, auth_service
from dashboard_api.api.deps import get_current_admin, get_current_principal
from dashboard_api.models.admin import Admin

router = APIRouter()


@router.post("/login", response_model=TokenBundleResponse, status_code=status.HTTP_200_OK)
def login(
    credentials: AdminLogin,
    db: Session = Depends(get_db)
):
    """
    Admin login - verify email and password and issue a token pair

    Every access token issued to this admin before the login stops working.
    Rate limited per client IP.
    """
    bundle = auth_service.login(db, credentials.email, credentials.password, PrincipalType.ADMIN)
    return TokenBundleResponse.from_bundle(bundle)


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh_token(
    req: RefreshRequest,
    db: Session = Depends(get_db),
):
    """
    Exchange a refresh token for a new access token

    A 401 with code INVALID_REFRESH_TOKEN means the client must log in again.
    """
    grant = auth_service.refresh(db, req.refresh_token)
    return AccessTokenResponse.from_grant(grant)


@router.post("/device", response_model=TokenBundleResponse)
def device_authenticate(
    credentials: DeviceAuthRequest,
    db: Session = Depends(get_db),
):
    """Device login with device_id and API key"""
    bundle = auth_service.authenticate_device(db, credentials.device_id, credentials.api_key)
    return TokenBundleResponse.from_bundle(bundle)


@router.post("/logout", response_model=LogoutResponse)
def logout(
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Logout any principal by bumping its token_version

    All of the principal's access tokens become invalid (TOKEN_REVOKED).
    """
    version = auth_service.logout(db, principal.principal_id, principal.principal_type)
    return LogoutResponse(token_version=version)


@router.get("/profile", response_model=AdminResponse)
def get_profile(current_admin: Admin = Depends(get_current_admin)):
    """Current admin profile"""
    return AdminResponse.model_validate(current_admin)
