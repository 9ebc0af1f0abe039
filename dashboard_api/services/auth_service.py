"""Authenticator - credential checks, session issuance and per-request authentication."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from dashboard_api.config import settings
from dashboard_api.core.exceptions import (
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    ResourceAlreadyExistsError,
    TokenError,
    TokenRevokedError,
)
from dashboard_api.core.security import (
    get_password_hash,
    verify_api_key,
    verify_password_or_dummy,
)
from dashboard_api.core.tokens import PrincipalType, get_token_codec
from dashboard_api.models.user import User
from dashboard_api.services.principals import PrincipalStore
from dashboard_api.services.token_service import RefreshTokenLedger

logger = logging.getLogger(__name__)

DEVICE_CREDENTIALS_ERROR = "Invalid device ID or API key"


@dataclass(frozen=True)
class TokenBundle:
    access_token: str
    refresh_token: str
    expires_at: datetime
    principal_id: int
    principal_type: PrincipalType


@dataclass(frozen=True)
class AccessGrant:
    access_token: str
    expires_at: datetime
    principal_id: int
    principal_type: PrincipalType


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """Identity resolved for the current request"""

    principal_id: int
    principal_type: PrincipalType
    record: Any


class AuthService:
    """Login, refresh, logout and revocation flows for all principal types"""

    @staticmethod
    def _issue_bundle(
        db: Session,
        principal_id: int,
        principal_type: PrincipalType,
        token_version: int,
    ) -> TokenBundle:
        """Stage a refresh row, sign the access token, commit once."""
        try:
            refresh = RefreshTokenLedger.add(db, principal_id, principal_type)
            access_token, expires_at = get_token_codec().issue_access(
                principal_id, principal_type, token_version
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        return TokenBundle(
            access_token=access_token,
            refresh_token=refresh.token,
            expires_at=expires_at,
            principal_id=principal_id,
            principal_type=principal_type,
        )

    @staticmethod
    def login(
        db: Session,
        identifier: str,
        secret: str,
        principal_type: PrincipalType,
    ) -> TokenBundle:
        """
        Password login for admins and users.

        A successful login bumps token_version, so every access token issued
        before it stops working. Refresh tokens are not touched.

        Raises:
            InvalidCredentialsError: unknown email or wrong password (same message)
        """
        principal_type = PrincipalType(principal_type)
        if principal_type == PrincipalType.DEVICE:
            raise ValueError("Devices authenticate with authenticate_device")

        record = PrincipalStore.get_by_key(db, principal_type, identifier)
        if not verify_password_or_dummy(secret, record.password_hash if record else None):
            logger.warning(
                f"Failed {principal_type.value} login for {identifier}: "
                f"{'unknown account' if record is None else 'wrong password'}"
            )
            raise InvalidCredentialsError()

        try:
            version = PrincipalStore.bump_token_version(db, principal_type, record.id, touch_seen=True)
        except Exception:
            db.rollback()
            raise
        if version is None:
            db.rollback()
            raise InvalidCredentialsError()

        bundle = AuthService._issue_bundle(db, record.id, principal_type, version)
        logger.info(f"{principal_type.value} {record.id} logged in (token_version={version})")
        return bundle

    @staticmethod
    def register_user(db: Session, name: str, email: str, password: str) -> Tuple[User, TokenBundle]:
        """Self-registration: create the user at token_version 1 and issue tokens"""
        if PrincipalStore.get_by_key(db, PrincipalType.USER, email) is not None:
            raise ResourceAlreadyExistsError("User with this email")

        user = User(
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            token_version=1,
        )
        try:
            db.add(user)
            db.flush()
        except Exception:
            db.rollback()
            raise

        bundle = AuthService._issue_bundle(db, user.id, PrincipalType.USER, user.token_version)
        db.refresh(user)
        logger.info(f"Registered user {user.id} ({user.email})")
        return user, bundle

    @staticmethod
    def authenticate_device(db: Session, device_id: str, api_key: str) -> TokenBundle:
        """
        Device login with device_id and API key.

        Unknown device and wrong key raise the same error after the same amount
        of work. Device authentication does not bump token_version.
        """
        device = PrincipalStore.get_by_key(db, PrincipalType.DEVICE, device_id)
        if not verify_api_key(api_key, device.api_key_hash if device else None):
            logger.warning(
                f"Failed device authentication for {device_id}: "
                f"{'unknown device' if device is None else 'wrong api key'}"
            )
            raise InvalidCredentialsError(DEVICE_CREDENTIALS_ERROR)

        try:
            PrincipalStore.mark_device_seen(db, device.id)
        except Exception:
            db.rollback()
            raise
        bundle = AuthService._issue_bundle(db, device.id, PrincipalType.DEVICE, device.token_version)
        logger.info(f"Device {device.device_id} authenticated")
        return bundle

    @staticmethod
    def refresh(db: Session, refresh_token: str) -> AccessGrant:
        """
        Exchange a refresh token for a new access token at the principal's
        current token_version. The refresh token itself is not rotated.

        Raises:
            InvalidRefreshTokenError: the client must log in again
        """
        try:
            record = RefreshTokenLedger.validate(db, refresh_token)
        except TokenError as exc:
            logger.info(f"Refresh rejected by codec: {exc.detail}")
            raise InvalidRefreshTokenError(exc.detail)
        except InvalidRefreshTokenError as exc:
            logger.info(f"Refresh rejected by ledger: {exc.detail}")
            raise

        principal_type = PrincipalType(record.principal_type)
        version = PrincipalStore.get_token_version(db, principal_type, record.principal_id)
        if version is None:
            logger.info(f"Refresh for missing {principal_type.value} {record.principal_id}")
            raise InvalidRefreshTokenError("principal_missing")

        access_token, expires_at = get_token_codec().issue_access(
            record.principal_id, principal_type, version
        )
        return AccessGrant(
            access_token=access_token,
            expires_at=expires_at,
            principal_id=record.principal_id,
            principal_type=principal_type,
        )

    @staticmethod
    def _bump_and_maybe_revoke(
        db: Session,
        principal_id: int,
        principal_type: PrincipalType,
        secret_hash: Optional[str] = None,
        revoke_refresh: bool = False,
    ) -> Tuple[int, int]:
        try:
            version = PrincipalStore.bump_token_version(
                db, principal_type, principal_id, secret_hash=secret_hash
            )
            if version is None:
                raise TokenRevokedError()
            revoked = 0
            if revoke_refresh:
                revoked = RefreshTokenLedger.revoke_all(db, principal_id, principal_type, commit=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        return version, revoked

    @staticmethod
    def logout(db: Session, principal_id: int, principal_type: PrincipalType) -> int:
        """
        Invalidate every outstanding access token of the principal.

        Refresh tokens survive unless REVOKE_REFRESH_TOKENS_ON_LOGOUT is set.
        """
        principal_type = PrincipalType(principal_type)
        version, revoked = AuthService._bump_and_maybe_revoke(
            db, principal_id, principal_type,
            revoke_refresh=settings.REVOKE_REFRESH_TOKENS_ON_LOGOUT,
        )
        logger.info(
            f"{principal_type.value} {principal_id} logged out "
            f"(token_version={version}, refresh_revoked={revoked})"
        )
        return version

    @staticmethod
    def reset_secret(
        db: Session,
        principal_id: int,
        principal_type: PrincipalType,
        new_secret_hash: str,
    ) -> int:
        """Replace the stored secret hash and bump token_version in one statement"""
        principal_type = PrincipalType(principal_type)
        version, revoked = AuthService._bump_and_maybe_revoke(
            db, principal_id, principal_type,
            secret_hash=new_secret_hash,
            revoke_refresh=settings.REVOKE_REFRESH_TOKENS_ON_LOGOUT,
        )
        logger.info(f"Secret reset for {principal_type.value} {principal_id} (token_version={version})")
        return version

    @staticmethod
    def revoke_sessions(db: Session, principal_id: int, principal_type: PrincipalType) -> Tuple[int, int]:
        """Full reset: bump token_version and revoke every refresh token"""
        principal_type = PrincipalType(principal_type)
        version, revoked = AuthService._bump_and_maybe_revoke(
            db, principal_id, principal_type, revoke_refresh=True
        )
        logger.info(
            f"Sessions revoked for {principal_type.value} {principal_id} "
            f"(token_version={version}, refresh_revoked={revoked})"
        )
        return version, revoked

    @staticmethod
    def authenticate(db: Session, token: str) -> AuthenticatedPrincipal:
        """
        Resolve a bearer access token to a live principal.

        Raises:
            TokenError: the token failed codec verification
            TokenRevokedError: principal gone or token_version moved on
        """
        claims = get_token_codec().verify_access(token)
        record = PrincipalStore.get(db, claims.principal_type, claims.principal_id)
        if record is None or record.token_version != claims.token_version:
            raise TokenRevokedError()
        return AuthenticatedPrincipal(
            principal_id=claims.principal_id,
            principal_type=claims.principal_type,
            record=record,
        )


auth_service = AuthService()
