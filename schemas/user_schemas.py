"""
Recipedium User Schemas
Profile update and password change payloads
"""

from typing import Optional
from pydantic import EmailStr, Field, field_validator

from schemas.common import ApiModel

MAX_PROFILE_IMAGE_BYTES = 2 * 1024 * 1024


class UserUpdate(ApiModel):
    """Schema for user profile updates; omitted fields are left unchanged"""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    bio: Optional[str] = Field(None, max_length=500)
    profile_image: Optional[str] = None
    password: Optional[str] = Field(None, min_length=8, max_length=128)

    @field_validator("name", "bio", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower() if v else v

    @field_validator("bio")
    @classmethod
    def validate_bio(cls, v):
        # Empty string clears the bio
        if v and len(v) < 2:
            raise ValueError("Bio must be at least 2 characters")
        return v

    @field_validator("profile_image")
    @classmethod
    def validate_profile_image(cls, v):
        if v and v.startswith("data:image") and len(v.encode("utf-8")) > MAX_PROFILE_IMAGE_BYTES:
            raise ValueError("Profile image must be smaller than 2MB")
        return v


class PasswordChange(ApiModel):
    """Schema for password change"""
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)
