"""Refresh token ledger - issue, validate, revoke and sweep persisted refresh tokens."""

from __future__ import annotations

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from dashboard_api.core.exceptions import (
    RefreshTokenExpiredError,
    RefreshTokenNotFoundError,
    RefreshTokenRevokedError,
    RefreshTokenTypeMismatchError,
)
from dashboard_api.core.timeutils import to_naive_utc, utcnow
from dashboard_api.core.tokens import PrincipalType, RefreshClaims, get_token_codec
from dashboard_api.models.security import RefreshToken

logger = logging.getLogger(__name__)


class RefreshTokenLedger:
    """Persisted refresh-token lifecycle."""

    @staticmethod
    def add(db: Session, principal_id: int, principal_type: PrincipalType) -> RefreshToken:
        """Sign and stage a refresh token row without committing."""
        token, expires_at = get_token_codec().issue_refresh(principal_id, principal_type)
        record = RefreshToken(
            token=token,
            principal_id=principal_id,
            principal_type=PrincipalType(principal_type).value,
            expires_at=expires_at,
            is_revoked=False,
        )
        db.add(record)
        db.flush()
        return record

    @staticmethod
    def issue(db: Session, principal_id: int, principal_type: PrincipalType) -> RefreshToken:
        """Sign, insert and commit a refresh token in one transaction."""
        try:
            record = RefreshTokenLedger.add(db, principal_id, principal_type)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(record)
        return record

    @staticmethod
    def _classify(db: Session, token: str, claims: RefreshClaims) -> Exception:
        """
        Explain why a token failed the usability query. Never grants access.
        """
        record = db.query(RefreshToken).filter(RefreshToken.token == token).first()
        if record is None:
            return RefreshTokenNotFoundError()
        if record.principal_id != claims.principal_id or record.principal_type != claims.principal_type.value:
            return RefreshTokenTypeMismatchError()
        if record.is_revoked:
            return RefreshTokenRevokedError()
        if to_naive_utc(record.expires_at) <= utcnow():
            return RefreshTokenExpiredError()
        return RefreshTokenNotFoundError()

    @staticmethod
    def validate(db: Session, token: str) -> RefreshToken:
        """
        Verify a refresh token's signature and confirm it is usable.

        Raises:
            TokenError: signature, expiry or claim failure from the codec
            InvalidRefreshTokenError: token unknown, revoked, expired or bound
                to a different principal
        """
        claims = get_token_codec().verify_refresh(token)
        record = (
            db.query(RefreshToken)
            .filter(
                RefreshToken.token == token,
                RefreshToken.principal_id == claims.principal_id,
                RefreshToken.principal_type == claims.principal_type.value,
                RefreshToken.is_revoked == False,  # noqa: E712
                RefreshToken.expires_at > utcnow(),
            )
            .first()
        )
        if record is None:
            raise RefreshTokenLedger._classify(db, token, claims)
        return record

    @staticmethod
    def revoke(db: Session, token: str) -> int:
        """Mark one token revoked. Unknown or already revoked tokens are not an error."""
        try:
            count = (
                db.query(RefreshToken)
                .filter(RefreshToken.token == token, RefreshToken.is_revoked == False)  # noqa: E712
                .update({RefreshToken.is_revoked: True, RefreshToken.updated_at: utcnow()},
                        synchronize_session=False)
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        return count

    @staticmethod
    def revoke_all(
        db: Session,
        principal_id: int,
        principal_type: PrincipalType,
        commit: bool = True,
    ) -> int:
        """Revoke every live refresh token of a principal."""
        count = (
            db.query(RefreshToken)
            .filter(
                RefreshToken.principal_id == principal_id,
                RefreshToken.principal_type == PrincipalType(principal_type).value,
                RefreshToken.is_revoked == False,  # noqa: E712
            )
            .update({RefreshToken.is_revoked: True, RefreshToken.updated_at: utcnow()},
                    synchronize_session=False)
        )
        if commit:
            db.commit()
        return count

    @staticmethod
    def delete_for_principal(db: Session, principal_id: int, principal_type: PrincipalType) -> int:
        """Delete a principal's refresh tokens; part of the caller's transaction."""
        return (
            db.query(RefreshToken)
            .filter(
                RefreshToken.principal_id == principal_id,
                RefreshToken.principal_type == PrincipalType(principal_type).value,
            )
            .delete(synchronize_session=False)
        )

    @staticmethod
    def sweep(db: Session) -> int:
        """Delete expired or revoked refresh tokens."""
        try:
            count = (
                db.query(RefreshToken)
                .filter(or_(RefreshToken.expires_at < utcnow(), RefreshToken.is_revoked == True))  # noqa: E712
                .delete(synchronize_session=False)
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Refresh token sweep removed {count} rows")
        return count


refresh_token_ledger = RefreshTokenLedger()
