"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import Optional
from driveway_hub.app.models.enums import UserRole


class UserRegister(BaseModel):
    """
    Schema for user registration.

    Used by POST /api/auth/register. Default role is DRIVER; admins cannot
    self-register.
    """
    email: EmailStr = Field(..., description="User email address")
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)
    role: UserRole = Field(default=UserRole.DRIVER, description="driver, host or both")

    @field_validator("role")
    @classmethod
    def no_admin_signup(cls, value: UserRole) -> UserRole:
        if value == UserRole.ADMIN:
            raise ValueError("admin accounts cannot be self-registered")
        return value


class UserLogin(BaseModel):
    """
    Schema for user login.

    Demo login is by email only.
    """
    email: EmailStr = Field(..., description="Email address")


class UserResponse(BaseModel):
    """
    Schema for user information response.

    Used by GET /api/auth/me.
    """
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    is_active: bool
    tesla_connected: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    """Returned by register and login."""
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserResponse
