"""
Device management and telemetry ingestion endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Header
import structlog

from soilsense.api.deps import get_current_user, get_device_registry, get_ingestion_service
from soilsense.core.errors import NotFound
from soilsense.models.user import User
from soilsense.schemas.device import (
    DeviceEnvelope,
    DeviceResponse,
    IngestionResponse,
    StatusMessage,
    TelemetrySubmission,
)
from soilsense.services.ingestion import IngestionService
from soilsense.services.registry import DeviceRegistry

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/newDevice", response_model=IngestionResponse, response_model_exclude_none=True)
def submit_telemetry(
    submission: TelemetrySubmission,
    x_access_token: Optional[str] = Header(None),
    ingestion: IngestionService = Depends(get_ingestion_service)
):
    """Append a reading to the device holding ``apiKey``, or create a device for the token's user"""
    result = ingestion.submit(submission, x_access_token)
    return IngestionResponse(message=result.message, api_key=result.api_key)


@router.get("/devices", response_model=List[DeviceResponse])
def list_devices(
    user: User = Depends(get_current_user),
    registry: DeviceRegistry = Depends(get_device_registry)
):
    """Devices owned by the caller"""
    devices = registry.find_by_owner(user.id)
    return [DeviceResponse.model_validate(device) for device in devices]


@router.get("/devices/{device_name}", response_model=DeviceEnvelope)
def get_device(device_name: str, registry: DeviceRegistry = Depends(get_device_registry)):
    """Get a device and its readings by name"""
    device = registry.find_by_name(device_name)
    if not device:
        raise NotFound("Device not found")

    return DeviceEnvelope(device=DeviceResponse.model_validate(device))


@router.delete("/devices/{device_id}", response_model=StatusMessage)
def delete_device(
    device_id: str,
    user: User = Depends(get_current_user),
    registry: DeviceRegistry = Depends(get_device_registry)
):
    """Delete one of the caller's devices; other users' devices read as missing"""
    if not registry.delete_by_id_for_owner(device_id, user.id):
        raise NotFound("Device not found")

    return StatusMessage(message="Device Deleted Successfully")
