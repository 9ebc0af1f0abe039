"""Device management routes (admin only)"""

import math

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dashboard_api.core.database import get_db
from dashboard_api.schemas.device import DeviceCreate, DeviceCredentials, DeviceResponse, DeviceUpdate
from dashboard_api.schemas.response import APIResponse, PaginatedResponse
from dashboard_api.services.device_service import device_service
from dashboard_api.api.deps import RecordId, get_current_admin
from dashboard_api.models.admin import Admin

router = APIRouter()


@router.get("", response_model=PaginatedResponse[DeviceResponse])
def list_devices(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    devices, total = device_service.list_devices(db, page=page, limit=limit)
    return PaginatedResponse[DeviceResponse](
        items=[DeviceResponse.model_validate(d) for d in devices],
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total else 0,
    )


@router.post("", response_model=DeviceCredentials, status_code=status.HTTP_201_CREATED)
def create_device(
    data: DeviceCreate,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Provision a device

    The API key is returned only in this response; store it on the device.
    """
    device, api_key = device_service.create_device(db, data)
    return DeviceCredentials(device=DeviceResponse.model_validate(device), api_key=api_key)


@router.get("/{device_id}", response_model=DeviceResponse)
def get_device(
    device_id: RecordId,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return DeviceResponse.model_validate(device_service.get_device(db, device_id))


@router.put("/{device_id}", response_model=DeviceResponse)
def update_device(
    device_id: RecordId,
    data: DeviceUpdate,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    device = device_service.get_device(db, device_id)
    return DeviceResponse.model_validate(device_service.update_device(db, device, data))


@router.delete("/{device_id}", response_model=APIResponse)
def delete_device(
    device_id: RecordId,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Delete a device together with its refresh tokens"""
    device = device_service.get_device(db, device_id)
    device_service.delete_device(db, device)
    return APIResponse(message=f"Device {device_id} deleted successfully")


@router.post("/{device_id}/reset-key", response_model=DeviceCredentials)
def reset_device_key(
    device_id: RecordId,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Issue a new API key; the device's outstanding access tokens stop working
    """
    device = device_service.get_device(db, device_id)
    api_key, _ = device_service.reset_api_key(db, device)
    return DeviceCredentials(device=DeviceResponse.model_validate(device), api_key=api_key)
