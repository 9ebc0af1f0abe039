"""Admin model"""

from sqlalchemy import Column, Integer, String, DateTime

from dashboard_api.core.database import Base
from dashboard_api.core.timeutils import utcnow


class Admin(Base):
    """Administrator account; authenticates with email and password"""

    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    token_version = Column(Integer, default=1, nullable=False)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Admin(id={self.id}, email='{self.email}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "email": self.email,
            "last_login": self.last_login.isoformat() if self.last_login else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
