"""
Recipedium Authentication Schemas
Pydantic models for authentication requests and responses
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from schemas.common import ApiModel
from utils.date_utils import ensure_utc


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class UserCreate(BaseModel):
    """Schema for user registration"""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _normalize_email(v)


class UserLogin(BaseModel):
    """Schema for user login"""
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _normalize_email(v)


class PasswordResetRequest(BaseModel):
    """Schema for password reset request"""
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _normalize_email(v)


class PasswordReset(ApiModel):
    """Schema for password reset"""
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)


class UserOut(ApiModel):
    """Public account view; never carries the password hash"""
    id: str
    name: str
    email: str
    role: str
    active: bool
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: datetime

    @field_validator("role", mode="before")
    @classmethod
    def role_value(cls, v):
        return getattr(v, "value", v)

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, v):
        return ensure_utc(v)


class AuthResponse(BaseModel):
    """Schema for authentication token response"""
    token: str
    user: UserOut


class MeResponse(BaseModel):
    user: UserOut


class ForgotPasswordResponse(BaseModel):
    success: bool = True
    message: str


class ResetPasswordResponse(BaseModel):
    success: bool = True
    message: str
    token: str
