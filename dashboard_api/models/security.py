"""Security-related persistence models."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index

from dashboard_api.core.database import Base
from dashboard_api.core.timeutils import utcnow


class RefreshToken(Base):
    """Refresh token record for revocation and expiry sweeps."""

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(512), unique=True, nullable=False, index=True)
    principal_id = Column(Integer, nullable=False)
    principal_type = Column(String(16), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    is_revoked = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_refresh_tokens_principal", "principal_id", "principal_type"),
        Index("idx_refresh_tokens_expires_at", "expires_at"),
    )

    def __repr__(self):
        return (
            f"<RefreshToken(id={self.id}, principal={self.principal_type}:{self.principal_id}, "
            f"revoked={self.is_revoked})>"
        )
