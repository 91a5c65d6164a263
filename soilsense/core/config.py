"""
Configuration settings for the SoilSense telemetry API
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # Database
    db_host: str = "postgres"
    db_port: str = "5432"
    db_name: str = "soilsense_db"
    db_user: str = "soilsense"
    db_password: str = "soilsense_password"
    database_url: str = ""

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    debug: bool = False
    cors_origins: List[str] = ["*"]

    # Authentication
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: int = 3600
    bcrypt_rounds: int = 10

    # Devices
    api_key_bytes: int = 16
    max_samples_per_device: int = 10000  # 0 keeps every sample

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Build database_url from components unless one was given
        if not self.database_url:
            self.database_url = f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"
        # Never hand out keys shorter than 16 bytes of entropy
        self.api_key_bytes = max(self.api_key_bytes, 16)

    @property
    def has_signing_secret(self) -> bool:
        return bool(self.jwt_secret and self.jwt_secret.strip())
