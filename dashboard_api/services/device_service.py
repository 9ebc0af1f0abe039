"""Device service - provisioning and API key management"""

from typing import List, Tuple
import logging

from sqlalchemy.orm import Session

from dashboard_api.core.exceptions import ResourceAlreadyExistsError, ResourceNotFoundError
from dashboard_api.core.security import generate_api_key, hash_api_key
from dashboard_api.core.tokens import PrincipalType
from dashboard_api.models.device import Device, DEVICE_STATUS_INACTIVE
from dashboard_api.schemas.device import DeviceCreate, DeviceUpdate
from dashboard_api.services.auth_service import AuthService
from dashboard_api.services.token_service import RefreshTokenLedger

logger = logging.getLogger(__name__)


class DeviceService:
    """Service for device management"""

    @staticmethod
    def get_device(db: Session, device_pk: int) -> Device:
        device = db.query(Device).filter(Device.id == device_pk).first()
        if not device:
            raise ResourceNotFoundError("Device")
        return device

    @staticmethod
    def create_device(db: Session, data: DeviceCreate) -> Tuple[Device, str]:
        """
        Provision a device with a fresh API key

        Returns:
            (device, plaintext API key); only the digest is stored
        """
        if db.query(Device).filter(Device.device_id == data.device_id).first():
            raise ResourceAlreadyExistsError("Device with this device_id")

        api_key = generate_api_key()
        device = Device(
            device_id=data.device_id,
            name=data.name,
            api_key_hash=hash_api_key(api_key),
            token_version=1,
            status=DEVICE_STATUS_INACTIVE,
        )
        db.add(device)
        db.commit()
        db.refresh(device)
        logger.info(f"Provisioned device {device.device_id} (id={device.id})")
        return device, api_key

    @staticmethod
    def list_devices(db: Session, page: int = 1, limit: int = 20) -> Tuple[List[Device], int]:
        query = db.query(Device)
        total = query.count()
        devices = query.order_by(Device.id.asc()).offset((page - 1) * limit).limit(limit).all()
        return devices, total

    @staticmethod
    def update_device(db: Session, device: Device, data: DeviceUpdate) -> Device:
        device.name = data.name
        db.commit()
        db.refresh(device)
        return device

    @staticmethod
    def delete_device(db: Session, device: Device) -> None:
        """Delete the device and its refresh tokens in one transaction"""
        device_pk = device.id
        try:
            removed = RefreshTokenLedger.delete_for_principal(db, device_pk, PrincipalType.DEVICE)
            db.delete(device)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Deleted device {device_pk} and {removed} refresh tokens")

    @staticmethod
    def reset_api_key(db: Session, device: Device) -> Tuple[str, int]:
        """Issue a new API key; outstanding access tokens of the device stop working"""
        api_key = generate_api_key()
        version = AuthService.reset_secret(db, device.id, PrincipalType.DEVICE, hash_api_key(api_key))
        db.refresh(device)
        return api_key, version


device_service = DeviceService()
