"""User model"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index

from dashboard_api.core.database import Base
from dashboard_api.core.timeutils import utcnow


class User(Base):
    """End-user account, self-registered or created by an admin"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    token_version = Column(Integer, default=1, nullable=False)
    last_login = Column(DateTime)
    # Creating admin; NULL for self-registered users.
    admin_id = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_users_admin_id', 'admin_id'),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"

    def is_managed_by(self, admin_id: int) -> bool:
        """Whether the given admin may modify this user"""
        return self.admin_id is None or self.admin_id == admin_id
