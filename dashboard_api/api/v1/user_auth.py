"""User authentication routes - registration, login, refresh and password change"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from dashboard_api.core.database import get_db
from dashboard_api.core.tokens import PrincipalType
from dashboard_api.schemas.auth import (
    AccessTokenResponse,
    LogoutResponse,
    RefreshRequest,
    TokenBundleResponse,
)
from dashboard_api.schemas.response import APIResponse
from dashboard_api.schemas.user import ChangePasswordRequest, UserLogin, UserRegister, UserResponse
from dashboard_api.services.auth_service import auth_service
from dashboard_api.services.user_service import user_service
from dashboard_api.api.deps import get_current_user
from dashboard_api.models.user import User

router = APIRouter()


@router.post("/register", response_model=TokenBundleResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: UserRegister,
    db: Session = Depends(get_db),
):
    """Self-registration; returns a token pair for the new account"""
    _, bundle = auth_service.register_user(db, data.name, data.email, data.password)
    return TokenBundleResponse.from_bundle(bundle)


@router.post("/login", response_model=TokenBundleResponse)
def login(
    credentials: UserLogin,
    db: Session = Depends(get_db),
):
    """User login; previously issued access tokens stop working"""
    bundle = auth_service.login(db, credentials.email, credentials.password, PrincipalType.USER)
    return TokenBundleResponse.from_bundle(bundle)


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh_token(
    req: RefreshRequest,
    db: Session = Depends(get_db),
):
    grant = auth_service.refresh(db, req.refresh_token)
    return AccessTokenResponse.from_grant(grant)


@router.post("/logout", response_model=LogoutResponse)
def logout(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    version = auth_service.logout(db, current_user.id, PrincipalType.USER)
    return LogoutResponse(token_version=version)


@router.get("/profile", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)


@router.post("/change-password", response_model=APIResponse)
def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Change the current user's password

    The presented access token is invalidated along with every other one;
    the client must log in again with the new password.
    """
    version = user_service.change_password(db, current_user, data.current_password, data.new_password)
    return APIResponse(
        message="Password changed successfully. Please login again",
        data={"token_version": version},
    )
