"""Device schemas"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class DeviceCreate(BaseModel):
    device_id: str = Field(..., min_length=1, max_length=100, pattern=r'^[A-Za-z0-9_.:-]+$')
    name: str = Field(..., min_length=1, max_length=100)


class DeviceUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class DeviceResponse(BaseModel):
    id: int
    device_id: str
    name: str
    status: str
    last_seen: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DeviceCredentials(BaseModel):
    """Device plus its API key; the key is never retrievable again"""
    device: DeviceResponse
    api_key: str
