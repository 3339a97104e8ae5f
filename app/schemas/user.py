"""User-related Pydantic schemas for request/response validation."""

from typing import Optional

from pydantic import EmailStr, Field, field_validator

from .base import BaseModelSchema, BaseSchema


class UserResponse(BaseModelSchema):
    """Schema for user response data."""

    auth_user_id: str
    email: Optional[str]
    username: Optional[str]
    is_active: bool


class UserUpdateRequest(BaseSchema):
    """Schema for updating user information."""

    username: Optional[str] = Field(None, max_length=100, description="Username to update")
    email: Optional[EmailStr] = Field(None, description="Email to update")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        """Strip the username and reject whitespace-only values."""
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Username cannot be empty or only whitespace")
        return v
