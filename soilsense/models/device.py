"""
Device model for field sensor devices and their telemetry samples
"""

from sqlalchemy import Column, String, Integer, BigInteger, Boolean, DateTime, Float, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from soilsense.database.connection import Base
import uuid


class Device(Base):
    """Sensor device owned by exactly one user"""

    __tablename__ = "user_devices"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    device_name = Column(String(255), unique=True, nullable=False, index=True)
    device_code = Column(String(255))
    device_number = Column(Float)
    api_key = Column(String(128), unique=True, nullable=False, index=True)
    last_connected = Column(DateTime(timezone=True))
    location = Column(String(255))
    crop_type = Column(String(255))
    user_id = Column(Uuid, ForeignKey("user_profiles.id"), nullable=False, index=True)

    # Samples share the device's lifetime
    samples = relationship(
        "TelemetrySample",
        back_populates="device",
        cascade="all, delete-orphan",
        order_by="TelemetrySample.id",
    )

    def __repr__(self):
        return f"<Device(id={self.id}, name={self.device_name}, user_id={self.user_id})>"


class TelemetrySample(Base):
    """One reading pushed by a device"""

    __tablename__ = "device_samples"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    device_id = Column(Uuid, ForeignKey("user_devices.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    temperature = Column(Float)
    humidity = Column(Float)
    soil_moisture = Column(Float)
    power_state = Column(Boolean)

    device = relationship("Device", back_populates="samples")

    def __repr__(self):
        return f"<TelemetrySample(device_id={self.device_id}, timestamp={self.timestamp})>"
