"""
Signed, time-limited identity tokens
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
import structlog

from soilsense.core.config import Settings
from soilsense.core.errors import InvalidToken

logger = structlog.get_logger(__name__)


class TokenService:
    """Issues and verifies the bearer tokens sent in ``x-access-token``"""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_seconds: int = 3600):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = timedelta(seconds=ttl_seconds)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            ttl_seconds=settings.token_ttl_seconds,
        )

    def issue(self, user_id, name: str, email: str) -> str:
        """Sign a token carrying the user's id, name and email"""
        now = datetime.now(timezone.utc)
        payload = {
            "userId": str(user_id),
            "name": name,
            "email": email,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Decode a token and return its claims.

        Raises:
            InvalidToken: bad signature, malformed token, expired token or
                missing ``userId`` claim
        """
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "userId"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidToken("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.info("Rejected token", reason=str(e))
            raise InvalidToken("Invalid token")
        return claims
