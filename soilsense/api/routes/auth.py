"""
Registration and login endpoints
"""

from fastapi import APIRouter, Depends
import structlog

from soilsense.api.deps import get_credential_store, get_token_service
from soilsense.core.errors import DuplicateEmail, InvalidCredentials
from soilsense.schemas.user import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
from soilsense.services.credentials import CredentialStore
from soilsense.services.tokens import TokenService

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/register", response_model=RegisterResponse)
def register(
    body: RegisterRequest,
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service)
):
    """Create a user and return a token for it"""
    if credentials.find_by_email(body.email) is not None:
        raise DuplicateEmail()

    secret_hash = credentials.hash_secret(body.password)
    user = credentials.create(body.name, body.email, secret_hash)
    return RegisterResponse(token=tokens.issue(user.id, user.name, user.email))


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    credentials: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service)
):
    """Exchange email and password for a token"""
    user = credentials.find_by_email(body.email)
    if user is None or not credentials.verify_secret(body.password, user.password_hash):
        logger.info("Login rejected")
        raise InvalidCredentials()

    return LoginResponse(user=tokens.issue(user.id, user.name, user.email))
