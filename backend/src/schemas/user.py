"""Pydantic schemas for registration, login and user info."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.validators import normalize_username


class Credentials(BaseModel):
    """Username/password pair for register and login."""

    username: str = Field(max_length=100)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        """Trim and lower-case the username."""
        return normalize_username(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        """Reject whitespace-only passwords."""
        if not v.strip():
            raise ValueError("Password cannot be empty")
        return v


class UserResponse(BaseModel):
    """Response model for user info."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    is_admin: bool
    created_at: datetime


class TokenResponse(BaseModel):
    """Access token plus the user it was issued for."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse
