"""
Telemetry ingestion and its authorization gate.

A submission to ``POST /newDevice`` takes exactly one of two paths, decided
by a single registry lookup on the submitted apiKey:

APPEND
    A device holds that apiKey. Possession of the key is the whole proof of
    authorization: no bearer token is read, even when one is sent. One sample
    is appended to the device.

CREATE
    No device holds the key (or none was sent). A valid bearer token naming an
    existing user is required before anything is written. A new device owned
    by that user is created with a fresh apiKey, which is returned once and
    never disclosed again.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog

from soilsense.core.errors import (
    DuplicateName,
    InternalError,
    InvalidRequest,
    InvalidToken,
    Unauthorized,
)
from soilsense.models.device import Device
from soilsense.models.user import User
from soilsense.schemas.device import TelemetrySubmission
from soilsense.services.credentials import CredentialStore
from soilsense.services.registry import DeviceRegistry, build_sample
from soilsense.services.tokens import TokenService

logger = structlog.get_logger(__name__)


class IngestionPath(str, Enum):
    APPEND = "append"
    CREATE = "create"


@dataclass
class Authorization:
    """Outcome of the gate: which path a submission takes and who it acts for"""
    path: IngestionPath
    device: Optional[Device] = None
    user: Optional[User] = None


@dataclass
class IngestionResult:
    path: IngestionPath
    device: Device
    api_key: Optional[str] = None

    @property
    def message(self) -> str:
        if self.path is IngestionPath.APPEND:
            return "Data updated successfully"
        return "New device and data created successfully"


def authenticate_user(token: Optional[str], tokens: TokenService, credentials: CredentialStore) -> User:
    """
    Resolve a bearer token to a stored user.

    Raises:
        Unauthorized: token absent, invalid or expired, or its user is gone
    """
    if not token:
        raise Unauthorized("Unauthorized: No token provided")

    try:
        claims = tokens.verify(token)
    except InvalidToken as e:
        raise Unauthorized(f"Unauthorized: {e.message}")

    user = credentials.find_by_id(claims["userId"])
    if user is None:
        logger.info("Token for unknown user rejected", user_id=claims["userId"])
        raise Unauthorized("Unauthorized: User not found")
    return user


class AuthorizationGate:
    """Decides, for one submission, between appending and creating"""

    def __init__(self, registry: DeviceRegistry, credentials: CredentialStore, tokens: TokenService):
        self.registry = registry
        self.credentials = credentials
        self.tokens = tokens

    def authorize(self, api_key: Optional[str], token: Optional[str]) -> Authorization:
        device = self.registry.find_by_api_key(api_key)
        path = IngestionPath.APPEND if device is not None else IngestionPath.CREATE

        if path is IngestionPath.APPEND:
            return Authorization(path=path, device=device)

        user = authenticate_user(token, self.tokens, self.credentials)
        return Authorization(path=path, user=user)


class IngestionService:
    """Applies an authorized submission to the registry"""

    def __init__(self, gate: AuthorizationGate):
        self.gate = gate
        self.registry = gate.registry

    def submit(self, submission: TelemetrySubmission, token: Optional[str] = None) -> IngestionResult:
        auth = self.gate.authorize(submission.api_key, token)

        if auth.path is IngestionPath.APPEND:
            self.registry.append_sample(auth.device, build_sample(submission.reading()))
            return IngestionResult(path=auth.path, device=auth.device)

        if not submission.device_name:
            raise InvalidRequest("deviceName is required to create a device")

        api_key = self.registry.generate_api_key()
        try:
            device = self.registry.create(
                device_name=submission.device_name,
                device_code=submission.device_code,
                device_number=submission.device_number,
                location=submission.location,
                crop_type=submission.crop_type,
                api_key=api_key,
                user_id=auth.user.id,
                first_sample=build_sample(submission.reading()),
            )
        except DuplicateName as e:
            raise InternalError(e.message)

        return IngestionResult(path=auth.path, device=device, api_key=api_key)
