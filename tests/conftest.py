import jwt
import pytest
from fastapi.testclient import TestClient

from soilsense.core.config import Settings
from soilsense.database.connection import build_engine, build_session_factory, init_database
from soilsense.main import create_app
from soilsense.services.credentials import CredentialStore
from soilsense.services.registry import DeviceRegistry
from soilsense.services.tokens import TokenService

TEST_SECRET = "test-signing-secret-with-enough-length-for-hs256"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        max_samples_per_device=0,
        log_level="WARNING",
    )


@pytest.fixture
def db_session(settings):
    """Session on a fresh in-memory database"""
    engine = build_engine(settings)
    init_database(engine)
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def credentials(db_session):
    return CredentialStore(db_session, rounds=4)


@pytest.fixture
def registry(db_session):
    return DeviceRegistry(db_session)


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET)


@pytest.fixture
def owner(credentials):
    return credentials.create("Ada", "ada@example.com", credentials.hash_secret("s3cret"))


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client):
    """Register a user over HTTP and return its token"""
    def _register(email="grower@example.com", name="Grower", password="hunter22"):
        response = client.post("/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()["token"]
    return _register


@pytest.fixture
def mock_telemetry_data():
    return {
        "temperature": 21.5,
        "humidity": 48.0,
        "soilMoisture": 33.2,
        "powerState": True,
    }


@pytest.fixture
def decode_token(settings):
    def _decode(token):
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    return _decode


@pytest.fixture
def app_session(client):
    """Open a fresh session on the database behind ``client``"""
    sessions = []

    def _open():
        session = client.app.state.session_factory()
        sessions.append(session)
        return session

    yield _open
    for session in sessions:
        session.close()
