"""User service - handles user management and password changes"""

from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from dashboard_api.models.user import User
from dashboard_api.schemas.user import UserCreate, UserUpdate
from dashboard_api.core.security import get_password_hash, verify_password, generate_password
from dashboard_api.core.exceptions import (
    AuthorizationError,
    InvalidCredentialsError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
)
from dashboard_api.core.tokens import PrincipalType
from dashboard_api.services.auth_service import AuthService
from dashboard_api.services.token_service import RefreshTokenLedger
import logging

logger = logging.getLogger(__name__)


class UserService:
    """Service for user management"""

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundError("User")
        return user

    @staticmethod
    def get_managed_user(db: Session, user_id: int, admin_id: int) -> User:
        """
        Load a user the given admin may modify: self-registered users and users
        that admin created.
        """
        user = UserService.get_user(db, user_id)
        if not user.is_managed_by(admin_id):
            logger.warning(f"Admin {admin_id} denied access to user {user_id} owned by admin {user.admin_id}")
            raise AuthorizationError("You can only manage users you created")
        return user

    @staticmethod
    def _ensure_email_free(db: Session, email: str, exclude_id: Optional[int] = None) -> None:
        query = db.query(User).filter(User.email == email)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ResourceAlreadyExistsError("User with this email")

    @staticmethod
    def create_user(db: Session, user_data: UserCreate, admin_id: int) -> Tuple[User, str]:
        """
        Create a user on behalf of an admin

        Args:
            db: Database session
            user_data: User creation data
            admin_id: Creating admin

        Returns:
            (user, plaintext password); the password is shown only once
        """
        UserService._ensure_email_free(db, user_data.email)

        password = user_data.password or generate_password()
        user = User(
            name=user_data.name,
            email=user_data.email,
            password_hash=get_password_hash(password),
            token_version=1,
            admin_id=admin_id,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"Admin {admin_id} created user {user.id} ({user.email})")
        return user, password

    @staticmethod
    def list_users(
        db: Session,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        """
        Page through users, optionally filtering by name or email substring

        Returns:
            (users on the page, total matching)
        """
        query = db.query(User)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter((User.name.ilike(pattern)) | (User.email.ilike(pattern)))

        total = query.count()
        users = (
            query.order_by(User.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return users, total

    @staticmethod
    def update_user(db: Session, user: User, update: UserUpdate) -> User:
        """Apply a partial profile update"""
        data = update.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in data and data["email"] != user.email:
            UserService._ensure_email_free(db, data["email"], exclude_id=user.id)
        for field, value in data.items():
            setattr(user, field, value)
        db.commit()
        db.refresh(user)
        logger.info(f"Updated user {user.id}: {sorted(data)}")
        return user

    @staticmethod
    def delete_user(db: Session, user: User) -> None:
        """Delete the user and its refresh tokens in one transaction"""
        user_id = user.id
        try:
            removed = RefreshTokenLedger.delete_for_principal(db, user_id, PrincipalType.USER)
            db.delete(user)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Deleted user {user_id} and {removed} refresh tokens")

    @staticmethod
    def reset_password(db: Session, user: User) -> Tuple[str, int]:
        """
        Replace the user's password with a generated one and invalidate their
        access tokens.

        Returns:
            (new plaintext password, new token_version)
        """
        password = generate_password()
        version = AuthService.reset_secret(db, user.id, PrincipalType.USER, get_password_hash(password))
        return password, version

    @staticmethod
    def change_password(db: Session, user: User, current_password: str, new_password: str) -> int:
        """
        Self-service password change. Every session other than a fresh login
        must re-authenticate afterwards.

        Raises:
            InvalidCredentialsError: current password is wrong
        """
        if not verify_password(current_password, user.password_hash):
            logger.warning(f"User {user.id} supplied a wrong current password")
            raise InvalidCredentialsError("Current password is incorrect")
        return AuthService.reset_secret(db, user.id, PrincipalType.USER, get_password_hash(new_password))


# Singleton instance
user_service = UserService()
