"""Admin routes - dashboard, user management and session control"""

import math
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dashboard_api.core.database import get_db
from dashboard_api.core.exceptions import ResourceNotFoundError
from dashboard_api.schemas.auth import DashboardSummary, SessionRevokeRequest, SessionRevokeResponse
from dashboard_api.schemas.response import APIResponse, PaginatedResponse
from dashboard_api.schemas.user import UserCreate, UserCredentials, UserResponse, UserUpdate
from dashboard_api.services.admin_service import dashboard_summary
from dashboard_api.services.auth_service import auth_service
from dashboard_api.services.principals import PrincipalStore
from dashboard_api.services.token_service import refresh_token_ledger
from dashboard_api.services.user_service import user_service
from dashboard_api.api.deps import RecordId, get_current_admin
from dashboard_api.models.admin import Admin

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard", response_model=DashboardSummary)
def get_dashboard(
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Counts of admins, users, devices, articles and live refresh tokens"""
    return DashboardSummary(**dashboard_summary(db))


@router.get("/users", response_model=PaginatedResponse[UserResponse])
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    List users (admin only)

    Args:
        page: 1-based page number
        limit: Page size, at most 100
        search: Substring of name or email
    """
    users, total = user_service.list_users(db, page=page, limit=limit, search=search)
    return PaginatedResponse[UserResponse](
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total else 0,
    )


@router.post("/users", response_model=UserCredentials, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Create a user owned by the current admin

    The password (generated when omitted) is returned only in this response.
    """
    user, password = user_service.create_user(db, user_data, current_admin.id)
    return UserCredentials(user=UserResponse.model_validate(user), password=password)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: RecordId,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return UserResponse.model_validate(user_service.get_user(db, user_id))


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: RecordId,
    update: UserUpdate,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    user = user_service.get_managed_user(db, user_id, current_admin.id)
    return UserResponse.model_validate(user_service.update_user(db, user, update))


@router.delete("/users/{user_id}", response_model=APIResponse)
def delete_user(
    user_id: RecordId,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Delete a user together with their refresh tokens"""
    user = user_service.get_managed_user(db, user_id, current_admin.id)
    user_service.delete_user(db, user)
    return APIResponse(message=f"User {user_id} deleted successfully")


@router.post("/users/{user_id}/reset-password", response_model=UserCredentials)
def reset_user_password(
    user_id: RecordId,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Replace the user's password with a generated one

    The user's outstanding access tokens stop working.
    """
    user = user_service.get_managed_user(db, user_id, current_admin.id)
    password, _ = user_service.reset_password(db, user)
    logger.info(f"Admin {current_admin.id} reset password of user {user_id}")
    return UserCredentials(user=UserResponse.model_validate(user), password=password)


@router.post("/sessions/revoke", response_model=SessionRevokeResponse)
def revoke_sessions(
    req: SessionRevokeRequest,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Log a principal out everywhere: bump token_version and revoke every
    refresh token.
    """
    if PrincipalStore.get(db, req.principal_type, req.principal_id) is None:
        raise ResourceNotFoundError(req.principal_type.value.capitalize())
    version, revoked = auth_service.revoke_sessions(db, req.principal_id, req.principal_type)
    logger.info(
        f"Admin {current_admin.id} revoked sessions of {req.principal_type.value} {req.principal_id}"
    )
    return SessionRevokeResponse(
        principal_type=req.principal_type,
        principal_id=req.principal_id,
        token_version=version,
        refresh_tokens_revoked=revoked,
    )


@router.post("/maintenance/sweep-refresh-tokens", response_model=APIResponse)
def sweep_refresh_tokens(
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Delete expired and revoked refresh tokens now"""
    removed = refresh_token_ledger.sweep(db)
    return APIResponse(message=f"Removed {removed} refresh tokens", data={"removed": removed})
