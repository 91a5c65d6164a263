"""
Device registry: device records and their append-only telemetry
"""

import secrets
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from soilsense.core.errors import DuplicateName, InternalError
from soilsense.models.device import Device, TelemetrySample
from soilsense.schemas.device import TelemetryReading

logger = structlog.get_logger(__name__)


def _as_uuid(value) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def build_sample(reading: TelemetryReading, timestamp: Optional[datetime] = None) -> TelemetrySample:
    """Turn submitted sensor values into a sample stamped with the ingestion time"""
    return TelemetrySample(
        timestamp=timestamp or datetime.now(timezone.utc),
        temperature=reading.temperature,
        humidity=reading.humidity,
        soil_moisture=reading.soil_moisture,
        power_state=reading.power_state,
    )


class DeviceRegistry:
    """Store operations on devices, scoped to one session"""

    def __init__(self, db: Session, api_key_bytes: int = 16, max_samples: int = 0):
        self.db = db
        self.api_key_bytes = api_key_bytes
        self.max_samples = max_samples

    def find_by_api_key(self, key: Optional[str]) -> Optional[Device]:
        if not key:
            return None
        return self.db.query(Device).filter(Device.api_key == key).first()

    def find_by_owner(self, user_id) -> List[Device]:
        owner = _as_uuid(user_id)
        if owner is None:
            return []
        return (self.db.query(Device)
                .filter(Device.user_id == owner)
                .all())

    def find_by_name(self, name: str) -> Optional[Device]:
        return self.db.query(Device).filter(Device.device_name == name).first()

    def find_by_id_for_owner(self, device_id, user_id) -> Optional[Device]:
        key, owner = _as_uuid(device_id), _as_uuid(user_id)
        if key is None or owner is None:
            return None
        return (self.db.query(Device)
                .filter(Device.id == key, Device.user_id == owner)
                .first())

    def generate_api_key(self) -> str:
        """Random hex key not held by any existing device"""
        while True:
            key = secrets.token_hex(self.api_key_bytes)
            if self.find_by_api_key(key) is None:
                return key

    def create(self, *, device_name: str, api_key: str, user_id, device_code: Optional[str] = None,
               device_number: Optional[float] = None, location: Optional[str] = None,
               crop_type: Optional[str] = None, first_sample: Optional[TelemetrySample] = None) -> Device:
        """
        Persist a new device, optionally seeded with its first sample.

        Raises:
            DuplicateName: another device already uses ``device_name``
            InternalError: any other store failure
        """
        if self.find_by_name(device_name) is not None:
            raise DuplicateName(f"Device name '{device_name}' is already taken")

        device = Device(
            device_name=device_name,
            device_code=device_code,
            device_number=device_number,
            api_key=api_key,
            location=location,
            crop_type=crop_type,
            user_id=_as_uuid(user_id),
            last_connected=datetime.now(timezone.utc),
        )
        if first_sample is not None:
            device.samples.append(first_sample)
            device.last_connected = first_sample.timestamp

        try:
            self.db.add(device)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if self.find_by_name(device_name) is not None:
                raise DuplicateName(f"Device name '{device_name}' is already taken")
            raise InternalError(str(e.orig))
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError(str(e))

        self.db.refresh(device)
        logger.info("Device created", device_id=str(device.id), device_name=device.device_name,
                    user_id=str(device.user_id))
        return device

    def append_sample(self, device: Device, sample: TelemetrySample) -> None:
        """
        Append one sample, refresh lastConnected and drop the oldest samples past the cap.

        Works on rows directly so the device's sample collection is never loaded.
        """
        sample.device_id = device.id
        device.last_connected = sample.timestamp

        dropped = 0
        try:
            self.db.add(sample)
            self.db.flush()
            if self.max_samples:
                dropped = self._trim_samples(device.id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError(str(e))

        logger.info("Telemetry appended", device_id=str(device.id), dropped_samples=dropped)

    def _trim_samples(self, device_id) -> int:
        total = (self.db.query(func.count(TelemetrySample.id))
                 .filter(TelemetrySample.device_id == device_id)
                 .scalar())
        excess = total - self.max_samples
        if excess <= 0:
            return 0

        oldest_ids = (self.db.execute(select(TelemetrySample.id)
                                      .where(TelemetrySample.device_id == device_id)
                                      .order_by(TelemetrySample.id)
                                      .limit(excess))
                      .scalars()
                      .all())
        (self.db.query(TelemetrySample)
         .filter(TelemetrySample.id.in_(oldest_ids))
         .delete(synchronize_session=False))
        return excess

    def delete_by_id_for_owner(self, device_id, user_id) -> bool:
        """Delete the device only when ``user_id`` owns it; False when nothing matched"""
        device = self.find_by_id_for_owner(device_id, user_id)
        if device is None:
            return False

        try:
            self.db.delete(device)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError(str(e))

        logger.info("Device deleted", device_id=str(device_id), user_id=str(user_id))
        return True
