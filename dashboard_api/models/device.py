"""Device model"""

from sqlalchemy import Column, Integer, String, DateTime, Index

from dashboard_api.core.database import Base
from dashboard_api.core.timeutils import utcnow

DEVICE_STATUS_INACTIVE = "inactive"
DEVICE_STATUS_ACTIVE = "active"


class Device(Base):
    """IoT device; authenticates with device_id and API key"""

    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, index=True)
    device_id = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    api_key_hash = Column(String(128), nullable=False)
    token_version = Column(Integer, default=1, nullable=False)
    status = Column(String(20), default=DEVICE_STATUS_INACTIVE, nullable=False)
    last_seen = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_devices_status', 'status'),
    )

    def __repr__(self):
        return f"<Device(id={self.id}, device_id='{self.device_id}', status='{self.status}')>"
