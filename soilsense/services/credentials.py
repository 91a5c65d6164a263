"""
Credential store: user identities and their bcrypt password hashes
"""

from typing import Optional
from uuid import UUID

import bcrypt
import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from soilsense.core.errors import DuplicateEmail, InternalError, InvalidRequest
from soilsense.models.user import User

logger = structlog.get_logger(__name__)

# bcrypt only looks at the first 72 bytes of a secret
MAX_SECRET_BYTES = 72


def hash_secret(plain: str, rounds: int = 10) -> str:
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_SECRET_BYTES:
        raise InvalidRequest(f"Password must be at most {MAX_SECRET_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_secret(plain: str, hashed: str) -> bool:
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_SECRET_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


class CredentialStore:
    """Reads and writes users through one request-scoped session"""

    def __init__(self, db: Session, rounds: int = 10):
        self.db = db
        self.rounds = rounds

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id) -> Optional[User]:
        try:
            key = user_id if isinstance(user_id, UUID) else UUID(str(user_id))
        except ValueError:
            return None
        return self.db.get(User, key)

    def hash_secret(self, plain: str) -> str:
        return hash_secret(plain, self.rounds)

    def verify_secret(self, plain: str, hashed: str) -> bool:
        return verify_secret(plain, hashed)

    def create(self, name: str, email: str, secret_hash: str) -> User:
        """
        Persist a new user.

        Raises:
            DuplicateEmail: the email is already registered
            InternalError: any other store failure
        """
        if self.find_by_email(email) is not None:
            raise DuplicateEmail()

        user = User(name=name, email=email, password_hash=secret_hash)
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            self.db.rollback()
            raise DuplicateEmail()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError(str(e))

        self.db.refresh(user)
        logger.info("User registered", user_id=str(user.id))
        return user
