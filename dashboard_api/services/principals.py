"""Credential store - uniform access to Admin, User and Device principals."""

from dataclasses import dataclass
from typing import Dict, Optional, Type

from sqlalchemy.orm import Session

from dashboard_api.core.database import Base
from dashboard_api.core.timeutils import utcnow
from dashboard_api.core.tokens import PrincipalType
from dashboard_api.models.admin import Admin
from dashboard_api.models.device import Device, DEVICE_STATUS_ACTIVE
from dashboard_api.models.user import User


@dataclass(frozen=True)
class PrincipalKind:
    """Per-variant column mapping"""

    model: Type[Base]
    key_attr: str
    secret_attr: str
    seen_attr: str


PRINCIPAL_KINDS: Dict[PrincipalType, PrincipalKind] = {
    PrincipalType.ADMIN: PrincipalKind(Admin, "email", "password_hash", "last_login"),
    PrincipalType.USER: PrincipalKind(User, "email", "password_hash", "last_login"),
    PrincipalType.DEVICE: PrincipalKind(Device, "device_id", "api_key_hash", "last_seen"),
}


class PrincipalStore:
    """
    Lookups and token_version mutations for every principal type.

    Mutating methods flush but never commit; the caller owns the transaction.
    """

    @staticmethod
    def kind(principal_type: PrincipalType) -> PrincipalKind:
        return PRINCIPAL_KINDS[PrincipalType(principal_type)]

    @staticmethod
    def get(db: Session, principal_type: PrincipalType, principal_id: int):
        model = PrincipalStore.kind(principal_type).model
        return db.query(model).filter(model.id == principal_id).first()

    @staticmethod
    def get_by_key(db: Session, principal_type: PrincipalType, key: str):
        kind = PrincipalStore.kind(principal_type)
        column = getattr(kind.model, kind.key_attr)
        return db.query(kind.model).filter(column == key).first()

    @staticmethod
    def get_token_version(db: Session, principal_type: PrincipalType, principal_id: int) -> Optional[int]:
        model = PrincipalStore.kind(principal_type).model
        return (
            db.query(model.token_version)
            .filter(model.id == principal_id)
            .scalar()
        )

    @staticmethod
    def bump_token_version(
        db: Session,
        principal_type: PrincipalType,
        principal_id: int,
        touch_seen: bool = False,
        secret_hash: Optional[str] = None,
    ) -> Optional[int]:
        """
        Atomically increment token_version, optionally stamping the last-seen
        column and replacing the stored secret in the same statement.

        Returns:
            The post-increment version, or None when the principal does not exist
        """
        kind = PrincipalStore.kind(principal_type)
        model = kind.model
        now = utcnow()
        values = {
            model.token_version: model.token_version + 1,
            model.updated_at: now,
        }
        if touch_seen:
            values[getattr(model, kind.seen_attr)] = now
        if secret_hash is not None:
            values[getattr(model, kind.secret_attr)] = secret_hash

        updated = (
            db.query(model)
            .filter(model.id == principal_id)
            .update(values, synchronize_session="fetch")
        )
        if not updated:
            return None

        version = (
            db.query(model.token_version)
            .filter(model.id == principal_id)
            .scalar()
        )
        return version

    @staticmethod
    def mark_device_seen(db: Session, device_pk: int) -> None:
        now = utcnow()
        (
            db.query(Device)
            .filter(Device.id == device_pk)
            .update(
                {Device.last_seen: now, Device.status: DEVICE_STATUS_ACTIVE, Device.updated_at: now},
                synchronize_session="fetch",
            )
        )
