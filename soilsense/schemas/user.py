"""
User Pydantic schemas
"""

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Schema for registering a user"""
    name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., min_length=3, description="Unique email address")
    password: str = Field(..., min_length=1, description="Plain password")


class LoginRequest(BaseModel):
    """Schema for logging in"""
    email: str
    password: str


class RegisterResponse(BaseModel):
    status: str = "ok"
    token: str


class LoginResponse(BaseModel):
    status: str = "ok"
    user: str = Field(..., description="Signed access token")
