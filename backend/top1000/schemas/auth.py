"""Auth and profile Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

Gender = Literal["female", "male", "other"]


class RegisterRequest(BaseModel):
    """User registration request."""
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if not any(c.isalpha() for c in v):
            raise ValueError("Password must contain a letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain a digit")
        return v


class LoginRequest(BaseModel):
    """User login request."""
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)


class TokenResponse(BaseModel):
    """JWT token response."""
    access_token: str
    token_type: str = "bearer"


class VoterGroups(BaseModel):
    """Self-identification flags of a voter."""
    gamer: bool = False
    journalist: bool = False
    scientist: bool = False
    critic: bool = False
    wasted: bool = False


class ProfileUpdateRequest(BaseModel):
    """New demographic profile of the current user."""
    age: int = Field(ge=0, le=9)
    gender: Optional[Gender] = None
    groups: VoterGroups = VoterGroups()


class ProfileResponse(BaseModel):
    """Demographic profile of a user."""
    model_config = ConfigDict(from_attributes=True)

    age: int
    gender: Optional[str] = None
    groups: VoterGroups


class UserResponse(BaseModel):
    """Public user info response."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    is_active: bool
    age: int
    gender: Optional[str] = None
    groups: VoterGroups
    created_at: datetime
