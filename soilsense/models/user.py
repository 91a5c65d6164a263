"""
User model for account holders
"""

from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.sql import func
from soilsense.database.connection import Base
import uuid


class User(Base):
    """Registered user owning zero or more devices"""

    __tablename__ = "user_profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(320), unique=True, nullable=False, index=True)
    password_hash = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
