"""
FastAPI dependencies shared by the routers.

Everything is built from the ``Settings`` object stored on ``app.state`` by
``create_app``; nothing is read from module globals.
"""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from soilsense.core.config import Settings
from soilsense.database.connection import get_database
from soilsense.models.user import User
from soilsense.services.credentials import CredentialStore
from soilsense.services.ingestion import AuthorizationGate, IngestionService, authenticate_user
from soilsense.services.registry import DeviceRegistry
from soilsense.services.tokens import TokenService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_credential_store(
    db: Session = Depends(get_database),
    settings: Settings = Depends(get_settings)
) -> CredentialStore:
    return CredentialStore(db, rounds=settings.bcrypt_rounds)


def get_device_registry(
    db: Session = Depends(get_database),
    settings: Settings = Depends(get_settings)
) -> DeviceRegistry:
    return DeviceRegistry(
        db,
        api_key_bytes=settings.api_key_bytes,
        max_samples=settings.max_samples_per_device,
    )


def get_ingestion_service(
    registry: DeviceRegistry = Depends(get_device_registry),
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service)
) -> IngestionService:
    return IngestionService(AuthorizationGate(registry, credentials, tokens))


def get_current_user(
    x_access_token: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
    credentials: CredentialStore = Depends(get_credential_store)
) -> User:
    """Resolve the ``x-access-token`` header to a user or fail with Unauthorized"""
    return authenticate_user(x_access_token, tokens, credentials)
