"""User profile routes - accessible to the user themself or to an admin"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dashboard_api.core.database import get_db
from dashboard_api.core.tokens import PrincipalType
from dashboard_api.schemas.user import UserResponse, UserUpdate
from dashboard_api.services.auth_service import AuthenticatedPrincipal
from dashboard_api.services.user_service import user_service
from dashboard_api.api.deps import RecordId, require_self_or_role

router = APIRouter()

self_or_admin = require_self_or_role(PrincipalType.ADMIN, "user_id")


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: RecordId,
    principal: AuthenticatedPrincipal = Depends(self_or_admin),
    db: Session = Depends(get_db)
):
    """
    Get a user profile

    Args:
        user_id: User ID
        principal: The user themself or any admin
        db: Database session

    Returns:
        User profile
    """
    return UserResponse.model_validate(user_service.get_user(db, user_id))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: RecordId,
    update: UserUpdate,
    principal: AuthenticatedPrincipal = Depends(self_or_admin),
    db: Session = Depends(get_db)
):
    """
    Update a user profile

    Admins may only update users they created or self-registered users.
    """
    if principal.principal_type == PrincipalType.ADMIN:
        user = user_service.get_managed_user(db, user_id, principal.principal_id)
    else:
        user = user_service.get_user(db, user_id)
    return UserResponse.model_validate(user_service.update_user(db, user, update))
