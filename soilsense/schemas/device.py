"""
Device and telemetry Pydantic schemas
"""

from pydantic import AliasChoices, BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID


class TelemetryReading(BaseModel):
    """Sensor values carried by every submission"""
    temperature: Optional[float] = Field(None, description="Air temperature")
    humidity: Optional[float] = Field(None, description="Relative humidity")
    soil_moisture: Optional[float] = Field(None, alias="soilMoisture", description="Soil moisture")
    power_state: Optional[bool] = Field(None, alias="powerState", description="Whether the device is powered")

    class Config:
        populate_by_name = True


class TelemetrySubmission(TelemetryReading):
    """Body of POST /newDevice; device fields are only used when a device is created"""
    api_key: Optional[str] = Field(None, alias="apiKey", description="Shared secret of an existing device")
    device_name: Optional[str] = Field(None, alias="deviceName", description="Unique device name")
    device_code: Optional[str] = Field(None, alias="deviceCode", description="Device code")
    device_number: Optional[float] = Field(None, alias="deviceNumber", description="Device number")
    location: Optional[str] = Field(None, description="Device location")
    crop_type: Optional[str] = Field(None, alias="cropType", description="Crop monitored by the device")

    def reading(self) -> TelemetryReading:
        return TelemetryReading(
            temperature=self.temperature,
            humidity=self.humidity,
            soil_moisture=self.soil_moisture,
            power_state=self.power_state,
        )


class SampleResponse(BaseModel):
    """Schema for one stored sample"""
    timestamp: datetime
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    soil_moisture: Optional[float] = Field(None, alias="soilMoisture")
    power_state: Optional[bool] = Field(None, alias="powerState")

    class Config:
        from_attributes = True
        populate_by_name = True


class DeviceResponse(BaseModel):
    """Schema for device response; the apiKey is deliberately absent"""
    id: UUID
    device_name: str = Field(..., alias="deviceName")
    device_code: Optional[str] = Field(None, alias="deviceCode")
    device_number: Optional[float] = Field(None, alias="deviceNumber")
    location: Optional[str] = None
    crop_type: Optional[str] = Field(None, alias="cropType")
    last_connected: Optional[datetime] = Field(None, alias="lastConnected")
    user_id: UUID = Field(..., alias="userId")
    dynamic_data: List[SampleResponse] = Field(
        default_factory=list,
        validation_alias=AliasChoices("dynamicData", "samples"),
        serialization_alias="dynamicData",
    )

    class Config:
        from_attributes = True
        populate_by_name = True


class DeviceEnvelope(BaseModel):
    """Schema for GET /devices/{deviceName}"""
    status: str = "success"
    device: DeviceResponse


class IngestionResponse(BaseModel):
    """Schema for POST /newDevice"""
    status: str = "success"
    message: str
    api_key: Optional[str] = Field(None, alias="apiKey")

    class Config:
        populate_by_name = True


class StatusMessage(BaseModel):
    status: str = "success"
    message: str
